"""Shared fixtures for debtscan tests."""

import pathlib
from datetime import datetime, timezone

import pytest

from debtscan.models import DebtRecord


def write(root: pathlib.Path, rel: str, text: str) -> pathlib.Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def write_report(report_dir: pathlib.Path, name: str, date: str, count: int) -> pathlib.Path:
    """Write a minimal report document of the shape generate_report produces."""
    body = (
        "# Technical Debt Report\n\n"
        f"Generated on {date}\n\n"
        "## Summary\n\n"
        f"Total debt items found: {count}\n"
    )
    return write(report_dir, name, body)


@pytest.fixture
def repo(tmp_path: pathlib.Path) -> pathlib.Path:
    """A small source tree: two scanned files plus excluded directories."""
    root = tmp_path / "repo"
    root.mkdir()
    write(root, "src/a.js", "const a = 1;\n\n// #debt: fix this\n")
    write(
        root,
        "src/b.js",
        "// #todo: later\n" + "\n" * 5 + "// #debt: also this\n",
    )
    write(root, "node_modules/lib/index.js", "// #debt: vendored\n")
    write(root, "dist/bundle.js", "// #debt: built\n")
    return root


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 1, 12, 30, 45, 123456, tzinfo=timezone.utc)


def rec(marker: str, line: int, text: str, rel: str = "src/a.js", root: str = "/repo") -> DebtRecord:
    return DebtRecord(f"{root}/{rel}", rel, line, marker, text)
