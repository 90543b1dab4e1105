import numpy as np
import pytest

from scattered_data_binner.errors import ReducerTypeError
from scattered_data_binner.reducers import (
    Statistic,
    fill_value,
    grouped_reduce,
    output_dtype,
    reducer_name,
    resolve_reducer,
)


def test_resolve_reducer():
    assert resolve_reducer("MEDIAN") is Statistic.MEDIAN
    assert resolve_reducer(Statistic.STD) is Statistic.STD
    assert resolve_reducer(np.mean) is Statistic.MEAN
    assert resolve_reducer(np.amax) is Statistic.MAX
    assert resolve_reducer(len) is Statistic.COUNT
    assert resolve_reducer(np.nanmean) is np.nanmean
    with pytest.raises(ReducerTypeError):
        resolve_reducer(3)
    with pytest.raises(ReducerTypeError):
        resolve_reducer("mode")


def test_reducer_name():
    assert reducer_name(Statistic.SUM) == "sum"
    assert reducer_name(np.nanmedian) == "nanmedian"


def test_output_dtype():
    assert output_dtype(Statistic.MEAN, np.dtype(np.int32)) == np.float64
    assert output_dtype(Statistic.MEAN, np.dtype(np.float32)) == np.float32
    assert output_dtype(Statistic.STD, np.dtype(np.complex128)) == np.float64
    assert output_dtype(Statistic.MIN, np.dtype(np.int16)) == np.int16
    assert np.issubdtype(output_dtype(Statistic.SUM, np.dtype(np.uint8)), np.unsignedinteger)
    assert output_dtype(Statistic.COUNT, np.dtype(np.float32)) == np.int64


def test_fill_value():
    assert np.isnan(fill_value(np.float32))
    assert np.isnan(fill_value(np.complex64))
    assert fill_value(np.int32) == 0
    assert fill_value(np.bool_) == 0


@pytest.fixture(scope="module")
def cell_values():
    cells = np.array([3, 0, 3, 3, 5, 0])
    values = np.array([1.0, 5.0, 2.0, 6.0, -1.0, 3.0])
    return cells, values


@pytest.mark.parametrize(
    "statistic, expected",
    [
        (Statistic.MEAN, [4.0, 3.0, -1.0]),
        (Statistic.SUM, [8.0, 9.0, -1.0]),
        (Statistic.MIN, [3.0, 1.0, -1.0]),
        (Statistic.MAX, [5.0, 6.0, -1.0]),
        (Statistic.MEDIAN, [4.0, 2.0, -1.0]),
        (Statistic.STD, [1.0, np.std([1.0, 2.0, 6.0]), 0.0]),
        (Statistic.COUNT, [2, 3, 1]),
    ],
)
def test_grouped_reduce_statistics(cell_values, statistic, expected):
    cells, values = cell_values
    grid = grouped_reduce(cells, values, 6, statistic)
    assert grid.shape == (6,)
    np.testing.assert_allclose(grid[[0, 3, 5]], expected)
    empty_cells = grid[[1, 2, 4]]
    if statistic is Statistic.COUNT:
        np.testing.assert_array_equal(empty_cells, 0)
    else:
        assert np.all(np.isnan(empty_cells))


def test_grouped_reduce_callable_sees_whole_cells(cell_values):
    cells, values = cell_values
    grid = grouped_reduce(cells, values, 6, lambda group: sorted(group.tolist())[-1] * 10)
    np.testing.assert_array_equal(grid, [50.0, np.nan, np.nan, 60.0, np.nan, -10.0])


def test_grouped_reduce_without_values():
    empty = np.array([], dtype=np.int64)
    assert np.all(np.isnan(grouped_reduce(empty, np.array([], dtype=np.int8), 4, Statistic.MEAN)))
    np.testing.assert_array_equal(grouped_reduce(empty, np.array([], dtype=np.int8), 4, np.ptp), [0, 0, 0, 0])
