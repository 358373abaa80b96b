from __future__ import annotations
import logging, os, webbrowser
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote
from jinja2 import Environment, FileSystemLoader, select_autoescape

from .exceptions import ReportDirectoryError, ReportNotFoundError
from .models import DebtRecord, MarkerDefinition, ReportResult, ScanReport, Thresholds, TrendReport
from .scoring import recommendation, weighted_score
from .utils import file_timestamp, iso_timestamp, utc_now

logger = logging.getLogger(__name__)

REPORT_PREFIX = "debt-report-"
TREND_PREFIX = "debt-trend-"


def _cell(value: object) -> str:
    return str(value).replace("|", "\\|").replace("\n", " ")


def _env() -> Environment:
    tmpl_dir = os.path.join(os.path.dirname(__file__), "templates")
    env = Environment(
        loader=FileSystemLoader(tmpl_dir),
        autoescape=select_autoescape(),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["cell"] = _cell
    return env


def group_by_marker(records: Sequence[DebtRecord]) -> Dict[str, List[DebtRecord]]:
    """Group records by marker; sections follow first appearance, rows keep scan order."""
    groups: Dict[str, List[DebtRecord]] = {}
    for r in records:
        groups.setdefault(r.marker, []).append(r)
    return groups


def build_report(records: Sequence[DebtRecord], now: Optional[datetime] = None) -> ScanReport:
    records = tuple(records)
    return ScanReport(generated_at=now or utc_now(), records=records, total_count=len(records))


def _link(record: DebtRecord, report_dir: Optional[str]) -> str:
    if not report_dir:
        return quote(record.rel_path)
    return quote(os.path.relpath(record.file_path, report_dir).replace(os.sep, "/"))


def render_report(
    report: ScanReport,
    report_dir: Optional[str] = None,
    thresholds: Optional[Thresholds] = None,
    markers: Optional[Sequence[MarkerDefinition]] = None,
) -> str:
    groups = []
    for marker, recs in group_by_marker(report.records).items():
        rows = [
            {"rel_path": r.rel_path, "link": _link(r, report_dir), "line": r.line_number, "text": r.display_text}
            for r in recs
        ]
        groups.append({"marker": marker, "rows": rows})
    tmpl = _env().get_template("report.md.j2")
    return tmpl.render(
        generated_on=iso_timestamp(report.generated_at),
        groups=groups,
        total_count=report.total_count,
        weighted_score=weighted_score(report.records, markers) if markers else None,
        recommendation=recommendation(report.total_count, thresholds),
    )


def ensure_report_dir(report_dir: str) -> str:
    report_dir = os.path.abspath(report_dir)
    try:
        os.makedirs(report_dir, exist_ok=True)
    except OSError as e:
        raise ReportDirectoryError(f"Cannot create report directory {report_dir}: {e}") from e
    return report_dir


def write_timestamped(
    report_dir: str, prefix: str, ts: datetime, render: Callable[[datetime], str]
) -> Tuple[str, datetime]:
    """Write a new ``<prefix><timestamp>.md`` file; never overwrites an existing one.

    The document is rendered before the file is created, so a render error
    leaves nothing behind. Returns the path and the timestamp actually used.
    """
    while True:
        path = os.path.join(report_dir, f"{prefix}{file_timestamp(ts)}.md")
        if not os.path.exists(path):
            text = render(ts)
            try:
                with open(path, "x", encoding="utf-8") as f:
                    f.write(text)
                return path, ts
            except FileExistsError:
                pass
        ts = ts + timedelta(microseconds=1)


def generate_report(
    records: Sequence[DebtRecord],
    report_dir: str,
    thresholds: Optional[Thresholds] = None,
    markers: Optional[Sequence[MarkerDefinition]] = None,
    now: Optional[datetime] = None,
) -> ReportResult:
    report_dir = ensure_report_dir(report_dir)
    report = build_report(records, now)

    def render(ts: datetime) -> str:
        stamped = ScanReport(generated_at=ts, records=report.records, total_count=report.total_count)
        return render_report(stamped, report_dir, thresholds, markers)

    path, ts = write_timestamped(report_dir, REPORT_PREFIX, report.generated_at, render)
    logger.info("Debt scan complete, report saved to %s", path)
    return ReportResult(report_path=path, total_count=report.total_count, generated_at=ts)


def _change(prev: Optional[int], count: int) -> str:
    if prev is None:
        return ""
    diff = count - prev
    return f"+{diff}" if diff > 0 else str(diff)


def render_trend(trend: TrendReport, generated_at: datetime) -> str:
    rows = []
    prev = None
    for p in trend.points:
        rows.append({"date": p.date_text or iso_timestamp(p.date), "count": p.count, "change": _change(prev, p.count)})
        prev = p.count
    tmpl = _env().get_template("trend.md.j2")
    return tmpl.render(
        generated_on=iso_timestamp(generated_at),
        rows=rows,
        delta=trend.delta,
        direction=trend.direction,
    )


def _default_viewer(path: str) -> None:
    webbrowser.open(Path(path).resolve().as_uri())


def open_report(path: str, viewer: Optional[Callable[[str], object]] = None) -> None:
    if not os.path.exists(path):
        logger.error("Report file not found at %s", path)
        raise ReportNotFoundError(f"Report file not found at {path}")
    (viewer or _default_viewer)(path)
    logger.info("Opened report at %s", path)
