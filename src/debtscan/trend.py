"""Trend analysis over previously written debt reports.

Only persisted report documents are read; nothing is shared with a scan in
progress. Points are ordered and selected by the date embedded in each
report ("Generated on ..."), not by file modification time, so touching or
copying old reports does not reorder the history.
"""
from __future__ import annotations
import logging, os, re
from datetime import datetime
from typing import List, Optional

from .exceptions import NoHistoryError
from .models import TrendPoint, TrendReport
from .renderer import REPORT_PREFIX, TREND_PREFIX, ensure_report_dir, render_trend, write_timestamped
from .scoring import classify_delta
from .utils import parse_timestamp, utc_now

logger = logging.getLogger(__name__)

DATE_RE = re.compile(r"^Generated on (.*)$", re.M)
COUNT_RE = re.compile(r"^Total debt items found: (\d+)\s*$", re.M)

DEFAULT_WINDOW = 5


def list_reports(report_dir: str) -> List[str]:
    if not os.path.isdir(report_dir):
        return []
    return sorted(
        os.path.join(report_dir, name)
        for name in os.listdir(report_dir)
        if name.startswith(REPORT_PREFIX) and name.endswith(".md")
    )


def extract_point(path: str) -> Optional[TrendPoint]:
    """Read one report's date and total; None when either is missing or unreadable."""
    try:
        with open(path, "r", encoding="utf-8", errors="ignore") as f:
            content = f.read()
    except OSError as e:
        logger.warning("Skipping unreadable report %s: %s", path, e)
        return None
    dm = DATE_RE.search(content)
    cm = COUNT_RE.search(content)
    if not dm or not cm:
        logger.debug("Skipping %s: no date or total line", path)
        return None
    date_text = dm.group(1).strip()
    date = parse_timestamp(date_text)
    if date is None:
        logger.debug("Skipping %s: unparseable date %r", path, date_text)
        return None
    return TrendPoint(date=date, count=int(cm.group(1)), source_file=path, date_text=date_text)


def analyze_trend(report_dir: str, window: int = DEFAULT_WINDOW) -> TrendReport:
    reports = list_reports(report_dir)
    if not reports:
        logger.info("No previous reports found to generate trend")
        raise NoHistoryError(f"No previous reports found in {report_dir}")
    points = [p for p in (extract_point(r) for r in reports) if p is not None]
    if not points:
        raise NoHistoryError(f"No readable reports found in {report_dir}")
    points.sort(key=lambda p: p.date)
    points = points[-max(window, 1):]
    delta = points[-1].count - points[0].count
    return TrendReport(points=tuple(points), delta=delta, direction=classify_delta(delta))


def generate_trend_report(report_dir: str, window: int = DEFAULT_WINDOW, now: Optional[datetime] = None) -> str:
    trend = analyze_trend(report_dir, window)
    report_dir = ensure_report_dir(report_dir)
    path, _ = write_timestamped(report_dir, TREND_PREFIX, now or utc_now(), lambda ts: render_trend(trend, ts))
    logger.info("Generated trend report at %s", path)
    return path
