from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class MarkerDefinition:
    token: str
    weight: float = 1.0


@dataclass(frozen=True)
class Thresholds:
    high: int = 50
    medium: int = 20


@dataclass(frozen=True)
class ScanConfig:
    markers: Tuple[MarkerDefinition, ...]
    include_patterns: Tuple[str, ...]
    exclude_patterns: Tuple[str, ...]
    report_dir: str = "debt-reports"
    thresholds: Thresholds = field(default_factory=Thresholds)
    trend_window: int = 5
    respect_gitignore: bool = False
    source: Optional[str] = None  # config file that won, None for built-in defaults

    @property
    def tokens(self) -> Tuple[str, ...]:
        return tuple(m.token for m in self.markers)


@dataclass(frozen=True)
class DebtRecord:
    file_path: str
    rel_path: str
    line_number: int
    marker: str
    description: str

    @property
    def display_text(self) -> str:
        return self.description


@dataclass(frozen=True)
class StructuredRecord(DebtRecord):
    """A ``DIR.TAG:`` occurrence: a category path followed by hashtags."""

    dir_path: str = ""
    tags: Tuple[str, ...] = ()

    @property
    def display_text(self) -> str:
        return " ".join([self.dir_path, *self.tags]) if self.tags else self.dir_path


@dataclass(frozen=True)
class ScanReport:
    generated_at: datetime
    records: Tuple[DebtRecord, ...]
    total_count: int


@dataclass(frozen=True)
class ReportResult:
    report_path: str
    total_count: int
    generated_at: Optional[datetime] = None  # as written in the document


@dataclass(frozen=True)
class TrendPoint:
    date: datetime
    count: int
    source_file: str
    date_text: str = ""


@dataclass(frozen=True)
class TrendReport:
    points: Tuple[TrendPoint, ...]
    delta: int
    direction: str  # increasing|decreasing|static


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    message: str
    error_code: Optional[str] = None
