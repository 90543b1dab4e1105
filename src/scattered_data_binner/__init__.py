"""Bin large scattered datasets (x, y, z) onto a regular grid.
Each grid cell gets the mean (or any other statistic) of the scattered values it contains, and optionally their number.
"""
from scattered_data_binner.axes import AxisForm, regular_axis
from scattered_data_binner.errors import AxisDefinitionError, GridBinnerError, ReducerTypeError, ShapeMismatchError
from scattered_data_binner.grid_binner import GridBinner, GridBinnerConfig, gridbin
from scattered_data_binner.reducers import Statistic
