"""
Error taxonomy for the posture clustering pipeline.

Load and configuration errors are fatal and carry the offending row, column
or group. Convergence problems of the fuzzy engine are reported as warnings
so the caller can decide whether to escalate them.
"""

from typing import Any, Optional


class PipelineError(ValueError):
    """Base class for every fatal error raised by the pipeline."""


class LoadError(PipelineError):
    """
    Raised when the input table cannot be read.

    Parameters
    ----------
    message : str
        Human readable description.
    row : int, optional
        1-based data row number (header excluded) of the offending cell.
    column : str, optional
        Name of the offending column.
    """

    def __init__(self, message: str, row: Optional[int] = None, column: Optional[str] = None):
        super().__init__(message)
        self.row = row
        self.column = column


class ImputationError(PipelineError):
    """Raised when a group cannot be imputed (e.g. it holds no usable value)."""

    def __init__(self, message: str, group: Any = None):
        super().__init__(message)
        self.group = group


class DegenerateInputError(PipelineError):
    """
    Raised for inputs that would otherwise produce NaN or meaningless output:
    zero-variance columns, invalid cluster counts, oversized samples.
    """


class ConvergenceWarning(UserWarning):
    """Emitted when fuzzy clustering approaches complete fuzziness."""
