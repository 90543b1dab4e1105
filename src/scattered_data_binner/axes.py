"""Grid axes: recovery from vectors or meshes, signed resolution and cell index mapping.

An axis is a sequence of regularly spaced coordinates. Each coordinate is the centre of one cell:

        |       |       |       |
        ----x0------x1------x2---
    x0 - res/2  x0 + res/2

A mesh is what ``np.meshgrid(x_axis, y_axis)`` returns: the x-axis is read along the first row,
the y-axis along the first column. Meshes must be axis-aligned and regularly spaced.
"""
from enum import Enum
from typing import Self

import numpy as np

from scattered_data_binner.errors import AxisDefinitionError


class AxisForm(Enum):
    """How grid coordinates are passed: bare axis vectors or a full coordinate mesh."""

    VECTOR = "vector"
    MESH = "mesh"

    @classmethod
    def infer(cls, values: np.ndarray) -> Self:
        """A 1-D array, or a 2-D array with a singleton dimension, is a vector. Anything else is a mesh."""
        values = np.asarray(values)
        if values.ndim <= 1 or (values.ndim == 2 and 1 in values.shape):
            return cls.VECTOR
        return cls.MESH


def recover_axis(values: np.ndarray, dimension: str, axis_form: AxisForm | None = None) -> np.ndarray:
    """Return the 1-D axis underlying ``values``.

    Args:
        values (np.ndarray): axis vector or coordinate mesh.
        dimension (str): "x" reads a mesh along its first row, "y" along its first column.
        axis_form (AxisForm | None): calling convention. Inferred from the shape when None.

    Raises:
        AxisDefinitionError: a mesh form requested for an array that is not 2-D, fewer than two coordinates
                             or a zero resolution.

    Returns:
        np.ndarray: the axis coordinates
    """
    values = np.asarray(values)
    if axis_form is None:
        axis_form = AxisForm.infer(values)

    if axis_form is AxisForm.MESH:
        if values.ndim != 2:
            raise AxisDefinitionError(f"A coordinate mesh must be 2-D. Your {dimension} coordinates have shape {values.shape}")
        axis = values[0, :] if dimension == "x" else values[:, 0]
    else:
        axis = values.ravel()

    if axis.size < 2:
        raise AxisDefinitionError(f"At least two {dimension} coordinates are needed to define a resolution. Got {axis.size}")
    if axis[1] == axis[0]:
        raise AxisDefinitionError(f"Zero {dimension} resolution: the first two coordinates are both {axis[0]}")
    return axis


def resolution(axis: np.ndarray) -> float:
    """Signed spacing between the first two coordinates. Negative for a descending axis.

    Computed in floating point: unsigned integer axes would wrap around when descending.
    """
    return float(axis[1]) - float(axis[0])


def regular_axis(start: float, stop: float, res: float) -> np.ndarray:
    """Regularly spaced axis from ``start`` to ``stop`` included, with step ``res``.

    ``regular_axis(4, -4, -0.25)`` gives a descending axis, as used for image-style rows.
    ``stop`` is included when it falls on the grid within floating point tolerance.
    """
    if res == 0:
        raise AxisDefinitionError("Zero resolution")
    if (stop - start) * res < 0:
        raise AxisDefinitionError(f"Resolution {res} does not go from {start} towards {stop}")
    n_steps = int(np.floor((stop - start) / res + 1e-9))
    return start + res * np.arange(n_steps + 1)


def in_bounds(values: np.ndarray, axis: np.ndarray) -> np.ndarray:
    """Mask of values inside the closed range of the axis. NaN is never inside."""
    return (values >= np.min(axis)) & (values <= np.max(axis))


def cell_index(values: np.ndarray, axis: np.ndarray) -> np.ndarray:
    """Map coordinates to the index of the cell whose centre is nearest along ``axis``.

    Adding half a resolution before flooring puts each axis coordinate at the centre of its cell.
    Descending axes are indexed on the ascending axis and mirrored, so that reversing an axis
    reverses the cells without changing which samples share a cell.
    """
    res = resolution(axis)
    step = abs(res)
    origin = np.min(axis)
    index = np.floor((values - origin + step / 2) / step).astype(np.int64)
    if res < 0:
        index = axis.size - 1 - index
    return np.clip(index, 0, axis.size - 1)
