"""Scan a source tree for inline technical-debt markers and track the count over time."""
from .config import load_config
from .exceptions import DebtScanError, NoHistoryError, ReportDirectoryError, ReportNotFoundError
from .models import DebtRecord, MarkerDefinition, ReportResult, ScanConfig, StructuredRecord, TrendReport, ValidationResult
from .renderer import generate_report, open_report
from .scanner import scan
from .trend import analyze_trend, generate_trend_report
from .validator import validate_debt_document

__version__ = "0.1.0"

__all__ = [
    "DebtRecord",
    "DebtScanError",
    "MarkerDefinition",
    "NoHistoryError",
    "ReportDirectoryError",
    "ReportNotFoundError",
    "ReportResult",
    "ScanConfig",
    "StructuredRecord",
    "TrendReport",
    "ValidationResult",
    "analyze_trend",
    "generate_report",
    "generate_trend_report",
    "load_config",
    "open_report",
    "scan",
    "validate_debt_document",
]
