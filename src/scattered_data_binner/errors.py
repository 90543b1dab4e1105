class GridBinnerError(Exception):
    pass


class ShapeMismatchError(GridBinnerError, ValueError):
    """The scattered coordinates and values do not have the same shape."""


class ReducerTypeError(GridBinnerError, TypeError):
    """The reduction is neither callable nor the name of a known statistic."""


class AxisDefinitionError(GridBinnerError, ValueError):
    """A grid axis from which no resolution can be derived."""
