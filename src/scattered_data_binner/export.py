import logging

import numpy as np
import rasterio
import rioxarray  # noqa: F401 registers the rio accessor
import xarray as xr
from affine import Affine

from scattered_data_binner.axes import resolution
from scattered_data_binner.errors import GridBinnerError

# Module configuration
logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)


def geotransform(x_axis: np.ndarray, y_axis: np.ndarray) -> Affine:
    """North-up affine transform of a grid whose axis coordinates are cell centres."""
    res_x = abs(resolution(x_axis))
    res_y = abs(resolution(y_axis))
    return Affine(res_x, 0, float(np.min(x_axis)) - res_x / 2, 0, -res_y, float(np.max(y_axis)) + res_y / 2)


def raster_values(values: np.ndarray, empty: np.ndarray, nodata: float) -> tuple[np.ndarray, type]:
    """Write nodata in empty cells and pick a GeoTIFF dtype holding the values without loss.

    Floating point grids are written as float32, integer grids as int32, or int64 when int32 would overflow.

    Raises:
        GridBinnerError: complex values, or integers out of the int64 range.
    """
    if np.iscomplexobj(values):
        raise GridBinnerError(f"Complex values cannot be exported to GeoTIFF. Got {values.dtype}")
    if np.issubdtype(values.dtype, np.floating):
        return np.where(empty | np.isnan(values), nodata, values), np.float32

    filled = values[~empty]
    low = min(int(np.min(filled, initial=0)), int(nodata))
    high = max(int(np.max(filled, initial=0)), int(nodata))
    for dtype in (np.int32, np.int64):
        info = np.iinfo(dtype)
        if info.min <= low and high <= info.max:
            return np.where(empty, int(nodata), values.astype(np.int64)), dtype
    raise GridBinnerError(f"Values from {low} to {high} do not fit in a 64-bit integer GeoTIFF")


def to_geotiff(
    binned: xr.Dataset, output_filepath: str, variable: str | None = None, nodata: float = -9999, crs: str | None = None
) -> str:
    """Export one variable of a binned dataset to a single band GeoTIFF.

    Rows are written from north to south and columns from west to east, whatever the direction of the grid axes.

    Args:
        binned (xr.Dataset): output of GridBinner.transform.
        output_filepath (str): path of the GeoTIFF to write.
        variable (str | None): variable to export. Defaults to the first data variable, i.e. the binned statistic.
        nodata (float): value written in empty cells. Defaults to -9999.
        crs (str | None): coordinate reference system. Defaults to the one of the dataset, if any.

    Returns:
        str: the exported filepath
    """
    if variable is None:
        variable = next(iter(binned.data_vars))
    x_axis = binned["x"].values
    y_axis = binned["y"].values
    values = binned[variable].transpose("y", "x").values

    # Empty cells of integer statistics hold 0, which is also a valid value: the count tells them apart
    empty = np.zeros(values.shape, dtype=bool)
    count_name = binned.attrs.get("count_variable")
    if count_name is not None and count_name != variable:
        empty = binned[count_name].transpose("y", "x").values == 0

    if y_axis[1] > y_axis[0]:
        values, empty = values[::-1, :], empty[::-1, :]
    if x_axis[1] < x_axis[0]:
        values, empty = values[:, ::-1], empty[:, ::-1]

    values, dtype = raster_values(values, empty, nodata)

    if crs is None:
        crs = binned.rio.crs

    logger.info(f"Exporting {variable} to {output_filepath}")
    with rasterio.open(
        output_filepath,
        "w",
        driver="GTiff",
        width=x_axis.size,
        height=y_axis.size,
        count=1,
        dtype=dtype,
        nodata=nodata,
        transform=geotransform(x_axis, y_axis),
        crs=crs,
    ) as dst:
        dst.write(values.astype(dtype), 1)
    return str(output_filepath)
