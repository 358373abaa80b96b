"""debtscan exception hierarchy.

Only the narrow hard failures are raised. Config problems and per-file read
errors are logged and recovered from, and validation problems are returned
as ``ValidationResult`` values.
"""


class DebtScanError(Exception):
    """Base exception for all debtscan errors."""


class ReportDirectoryError(DebtScanError):
    """Raised when the report output directory cannot be created."""


class NoHistoryError(DebtScanError):
    """Raised when a trend is requested but no usable prior report exists."""


class ReportNotFoundError(DebtScanError):
    """Raised when a report is opened after it has gone missing."""
