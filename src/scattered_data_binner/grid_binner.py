"""Fast binning of large scattered datasets onto a regular grid.

Each grid cell receives a statistic (the mean by default) of all the scattered values falling inside it, and
optionally the number of those values. Unlike interpolation, only cells containing valid measurements get a value:
the others hold the fill value. Everything runs in one pass over the samples, without neighbour search or fitting.
"""
import logging
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
import rioxarray  # noqa: F401 registers the rio accessor
import xarray as xr

from scattered_data_binner.axes import AxisForm, cell_index, in_bounds, recover_axis, regular_axis, resolution
from scattered_data_binner.errors import ShapeMismatchError
from scattered_data_binner.reducers import Reducer, Statistic, grouped_reduce, reducer_name, resolve_reducer

# Module configuration
logger = logging.getLogger(__name__)

ArrayLike = np.ndarray | xr.DataArray | Sequence[float]


def gridbin(
    x: ArrayLike,
    y: ArrayLike,
    z: ArrayLike,
    xq: ArrayLike,
    yq: ArrayLike,
    reduce: Statistic | str | Reducer = Statistic.MEAN,
    *,
    return_count: bool = False,
    axis_form: AxisForm | None = None,
) -> np.ndarray | Tuple[np.ndarray, np.ndarray]:
    """Bin scattered data (x, y, z) on the grid defined by xq, yq.

    Samples with a NaN value, or whose coordinates are outside the closed range of the grid axes, are dropped.
    Each remaining sample falls in the cell whose centre is nearest: axis coordinates are cell centres and the
    resolution is the spacing between the first two coordinates of each axis. Axes may be descending.

    Preconditions: coordinates are real numbers and the axes are regularly spaced. Nothing else is checked.

    Args:
        x (ArrayLike): x coordinates of the scattered samples.
        y (ArrayLike): y coordinates of the scattered samples. Same shape as x.
        z (ArrayLike): sample values. Same shape as x.
        xq (ArrayLike): grid x-axis, or a coordinate mesh as returned by np.meshgrid(x_axis, y_axis).
        yq (ArrayLike): grid y-axis, or a coordinate mesh.
        reduce (Statistic | str | Reducer): statistic computed on the values of each cell. Defaults to the mean.
                                            Any callable mapping a 1-D array to a scalar is accepted.
        return_count (bool): also return the number of samples in each cell. Defaults to False.
        axis_form (AxisForm | None): whether xq, yq are axis vectors or meshes. Inferred from their shape when None.

    Raises:
        ShapeMismatchError: x, y and z do not have the same shape.
        ReducerTypeError: reduce is neither callable nor a statistic name.
        AxisDefinitionError: an axis has less than two coordinates or a zero resolution.

    Returns:
        np.ndarray | Tuple[np.ndarray, np.ndarray]: grid of shape (len(yq), len(xq)) and, if return_count, the count
                                                    grid of the same shape. Empty cells hold NaN when the statistic is
                                                    a floating point number, 0 otherwise.
    """
    x, y, z = np.asarray(x), np.asarray(y), np.asarray(z)
    if not x.shape == y.shape == z.shape:
        raise ShapeMismatchError(f"Dimensions of x, y, z must all agree. Your x {x.shape}, y {y.shape}, z {z.shape}")
    reducer = resolve_reducer(reduce)

    x_axis = recover_axis(xq, "x", axis_form)
    y_axis = recover_axis(yq, "y", axis_form)
    shape = (y_axis.size, x_axis.size)

    x, y, z = x.ravel(), y.ravel(), z.ravel()
    keep = in_bounds(x, x_axis) & in_bounds(y, y_axis)
    if np.issubdtype(z.dtype, np.inexact):
        keep &= ~np.isnan(z)
    x, y, z = x[keep], y[keep], z[keep]

    cells = np.ravel_multi_index((cell_index(y, y_axis), cell_index(x, x_axis)), shape)
    grid = grouped_reduce(cells, z, shape[0] * shape[1], reducer).reshape(shape)
    logger.debug(f"Binning {z.size} samples on a {shape} grid, {keep.size - z.size} dropped")

    if return_count:
        count = np.bincount(cells, minlength=shape[0] * shape[1]).astype(np.int64).reshape(shape)
        return grid, count
    return grid


@dataclass
class GridBinnerConfig:
    """Regroup user choices for binning.

    Args:
        reduction (Statistic | str | Reducer): statistic computed in each cell. Defaults to the mean.
        with_count (bool): add the number of samples per cell to the output. Defaults to True.
        axis_form (AxisForm | None): calling convention of the grid coordinates. Inferred when None.
        variable_name (str): name of the binned variable in the output dataset. Defaults to "z".
        count_name (str): name of the count variable in the output dataset. Defaults to "count".
        crs (str | None): coordinate reference system of x and y, e.g. "EPSG:32632". Optional.
    """

    reduction: Statistic | str | Reducer = Statistic.MEAN
    with_count: bool = True
    axis_form: AxisForm | None = None
    variable_name: str = "z"
    count_name: str = "count"
    crs: str | None = None


class GridBinner:
    """Bin scattered data onto a regular grid and label the result with its coordinates."""

    def __init__(self, config: GridBinnerConfig | None = None):
        self.config = config if config is not None else GridBinnerConfig()

    @staticmethod
    def grid_axes(
        x_min: float, x_max: float, y_min: float, y_max: float, res: float, north_up: bool = False
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Create the axes of a grid of resolution ``res`` covering [x_min, x_max] x [y_min, y_max].

        Args:
            north_up (bool): descending y-axis starting at y_max, as image rows. Defaults to False.
        """
        x_axis = regular_axis(x_min, x_max, res)
        y_axis = regular_axis(y_max, y_min, -res) if north_up else regular_axis(y_min, y_max, res)
        return x_axis, y_axis

    def transform(self, x: ArrayLike, y: ArrayLike, z: ArrayLike, xq: ArrayLike, yq: ArrayLike) -> xr.Dataset:
        """Wrap-up gridbin and label its output.

        Args:
            x (ArrayLike): x coordinates of the scattered samples.
            y (ArrayLike): y coordinates of the scattered samples.
            z (ArrayLike): sample values.
            xq (ArrayLike): grid x-axis or coordinate mesh.
            yq (ArrayLike): grid y-axis or coordinate mesh.

        Returns:
            xr.Dataset: binned variable (and count) on dimensions (y, x), with the grid axes as coordinates
        """
        reducer = resolve_reducer(self.config.reduction)
        grid, count = gridbin(x, y, z, xq, yq, reducer, return_count=True, axis_form=self.config.axis_form)

        x_axis = recover_axis(xq, "x", self.config.axis_form)
        y_axis = recover_axis(yq, "y", self.config.axis_form)
        data_vars = {self.config.variable_name: (("y", "x"), grid)}
        if self.config.with_count:
            data_vars[self.config.count_name] = (("y", "x"), count)

        binned = xr.Dataset(
            data_vars,
            coords={"y": y_axis, "x": x_axis},
            attrs={
                "reduction": reducer_name(reducer),
                "resolution_x": float(resolution(x_axis)),
                "resolution_y": float(resolution(y_axis)),
                "n_samples": int(count.sum()),
            },
        )
        if self.config.with_count:
            binned.attrs["count_variable"] = self.config.count_name
        if self.config.crs is not None:
            binned = binned.rio.write_crs(self.config.crs)
        return binned
