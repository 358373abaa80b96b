from __future__ import annotations
import logging, os
from typing import List, Sequence

from .config import STRUCTURED_MARKER
from .models import DebtRecord, ScanConfig, StructuredRecord
from .utils import compile_spec, load_gitignore, resolve_pattern

logger = logging.getLogger(__name__)


def parse_structured(remainder: str):
    """Split ``/a/b #x #y`` into ('/a/b', ('#x', '#y')). Empty segments are dropped."""
    parts = [p.strip() for p in remainder.split("#")]
    tags = tuple("#" + p for p in parts[1:] if p)
    return parts[0], tags


def make_record(file_path: str, rel_path: str, line_number: int, marker: str, remainder: str) -> DebtRecord:
    description = remainder.strip()
    if marker == STRUCTURED_MARKER:
        dir_path, tags = parse_structured(description)
        return StructuredRecord(file_path, rel_path, line_number, marker, description, dir_path=dir_path, tags=tags)
    return DebtRecord(file_path, rel_path, line_number, marker, description)


def scan_lines(lines: Sequence[str], file_path: str, rel_path: str, markers: Sequence[str]) -> List[DebtRecord]:
    records: List[DebtRecord] = []
    for line_no, line in enumerate(lines, start=1):
        for marker in markers:
            idx = line.find(marker)
            if idx < 0:
                continue
            records.append(make_record(file_path, rel_path, line_no, marker, line[idx + len(marker):]))
    return records


def scan_file(file_path: str, root_dir: str, markers: Sequence[str]) -> List[DebtRecord]:
    """Scan one file; a read error is logged and yields no records."""
    try:
        with open(file_path, "r", encoding="utf-8", errors="ignore", newline="") as f:
            txt = f.read()
    except OSError as e:
        logger.error("Error scanning file %s: %s", file_path, e)
        return []
    lines = [ln[:-1] if ln.endswith("\r") else ln for ln in txt.split("\n")]
    rel = os.path.relpath(file_path, root_dir).replace(os.sep, "/")
    return scan_lines(lines, file_path, rel, markers)


def collect_files(root_dir: str, cfg: ScanConfig) -> List[str]:
    excludes = [compile_spec(cfg.exclude_patterns)]
    if cfg.respect_gitignore:
        excludes.append(load_gitignore(root_dir))
    seen = set()
    files: List[str] = []
    for pattern in cfg.include_patterns:
        for path in resolve_pattern(root_dir, pattern, excludes):
            if path in seen:
                continue
            seen.add(path)
            files.append(path)
    return files


def scan(root_dir: str, cfg: ScanConfig) -> List[DebtRecord]:
    root_dir = os.path.abspath(root_dir)
    logger.info("Starting debt scan in %s", root_dir)
    markers = cfg.tokens
    records: List[DebtRecord] = []
    files = collect_files(root_dir, cfg)
    for path in files:
        records.extend(scan_file(path, root_dir, markers))
    logger.info("Debt scan complete, found %d items in %d files", len(records), len(files))
    return records
