"""Grouped reduction of scattered values by grid cell.

Named statistics run vectorised over all cells at once. Any other callable is applied once per
nonempty cell, on a 1-D array holding all the values of that cell in no particular order.
"""
from enum import Enum
from typing import Callable

import numpy as np

from scattered_data_binner.errors import ReducerTypeError

Reducer = Callable[[np.ndarray], object]


class Statistic(str, Enum):
    MEAN = "mean"
    STD = "std"
    SUM = "sum"
    COUNT = "count"
    MEDIAN = "median"
    MIN = "min"
    MAX = "max"


# numpy reference implementation of each statistic, used for output dtypes and for the median
_NUMPY_FUNCTIONS: dict[Statistic, Callable] = {
    Statistic.MEAN: np.mean,
    Statistic.STD: np.std,
    Statistic.SUM: np.sum,
    Statistic.MEDIAN: np.median,
    Statistic.MIN: np.min,
    Statistic.MAX: np.max,
}

_CALLABLE_ALIASES: list[tuple[Callable, Statistic]] = [
    *((function, statistic) for statistic, function in _NUMPY_FUNCTIONS.items()),
    (np.amin, Statistic.MIN),
    (np.amax, Statistic.MAX),
    (len, Statistic.COUNT),
]


def resolve_reducer(reduce: Statistic | str | Reducer) -> Statistic | Reducer:
    """Turn a user reduction into a Statistic when one matches, else return the callable unchanged.

    Args:
        reduce (Statistic | str | Reducer): a Statistic, its name (e.g. "median"), a numpy function such as np.std,
                                            or any callable mapping a 1-D array to a scalar.

    Raises:
        ReducerTypeError: ``reduce`` is neither callable nor the name of a statistic.

    Returns:
        Statistic | Reducer: the statistic to compute or the callable to apply per cell
    """
    if isinstance(reduce, Statistic):
        return reduce
    if isinstance(reduce, str):
        try:
            return Statistic(reduce.lower())
        except ValueError as err:
            raise ReducerTypeError(
                f"Unknown statistic '{reduce}'. Available: {[statistic.value for statistic in Statistic]}"
            ) from err
    if not callable(reduce):
        raise ReducerTypeError(f"The reduction must be callable or a statistic name. Got {type(reduce).__name__}")
    for function, statistic in _CALLABLE_ALIASES:
        if reduce is function:
            return statistic
    return reduce


def reducer_name(reducer: Statistic | Reducer) -> str:
    if isinstance(reducer, Statistic):
        return reducer.value
    return getattr(reducer, "__name__", type(reducer).__name__)


def output_dtype(statistic: Statistic, dtype: np.dtype) -> np.dtype:
    """Dtype numpy gives to ``statistic`` computed on an array of ``dtype``."""
    if statistic is Statistic.COUNT:
        return np.dtype(np.int64)
    return np.asarray(_NUMPY_FUNCTIONS[statistic](np.zeros(1, dtype=dtype))).dtype


def fill_value(dtype: np.dtype):
    """NaN where the dtype can hold it, the additive identity otherwise."""
    dtype = np.dtype(dtype)
    if np.issubdtype(dtype, np.inexact):
        return np.nan
    return dtype.type(0)


def _reduce_statistic(statistic: Statistic, values: np.ndarray, starts: np.ndarray, counts: np.ndarray) -> np.ndarray:
    dtype = output_dtype(statistic, values.dtype)
    match statistic:
        case Statistic.COUNT:
            return counts.astype(dtype)
        case Statistic.SUM:
            return np.add.reduceat(values, starts, dtype=dtype)
        case Statistic.MEAN:
            return (np.add.reduceat(values, starts, dtype=dtype) / counts).astype(dtype)
        case Statistic.MIN:
            return np.minimum.reduceat(values, starts)
        case Statistic.MAX:
            return np.maximum.reduceat(values, starts)
        case Statistic.STD:
            mean_dtype = output_dtype(Statistic.MEAN, values.dtype)
            means = np.add.reduceat(values, starts, dtype=mean_dtype) / counts
            deviations = values - np.repeat(means, counts)
            variances = np.add.reduceat(np.abs(deviations) ** 2, starts) / counts
            return np.sqrt(variances).astype(dtype)
        case Statistic.MEDIAN:
            return np.asarray([np.median(group) for group in np.split(values, starts[1:])], dtype=dtype)


def grouped_reduce(cells: np.ndarray, values: np.ndarray, size: int, reducer: Statistic | Reducer) -> np.ndarray:
    """Reduce ``values`` sharing the same flat cell index into a flat grid of ``size`` cells.

    Args:
        cells (np.ndarray): flat cell index of each value, in [0, size)
        values (np.ndarray): values to reduce, same length as ``cells``
        size (int): number of cells in the grid
        reducer (Statistic | Reducer): output of resolve_reducer

    Returns:
        np.ndarray: flat grid. Cells without values hold the fill value of the output dtype.
    """
    if values.size == 0:
        dtype = output_dtype(reducer, values.dtype) if isinstance(reducer, Statistic) else values.dtype
        return np.full(size, fill_value(dtype), dtype=dtype)

    order = np.argsort(cells, kind="stable")
    sorted_values = values[order]
    keys, starts, counts = np.unique(cells[order], return_index=True, return_counts=True)

    if isinstance(reducer, Statistic):
        reduced = _reduce_statistic(reducer, sorted_values, starts, counts)
    else:
        reduced = np.asarray([reducer(group) for group in np.split(sorted_values, starts[1:])])

    grid = np.full(size, fill_value(reduced.dtype), dtype=reduced.dtype)
    grid[keys] = reduced
    return grid
