"""Tests for the tree walker and marker scanner."""

from __future__ import annotations

import logging
import os

import pytest

from debtscan.config import build_config, load_config
from debtscan.models import DebtRecord, StructuredRecord
from debtscan.renderer import generate_report
from debtscan.scanner import collect_files, parse_structured, scan, scan_file, scan_lines

from tests.conftest import write


def js_config(**extra):
    return build_config({"include_patterns": ["**/*.js"], **extra})


class TestScanLines:
    def test_description_is_trimmed_remainder(self) -> None:
        recs = scan_lines(["x = 1  // #debt:   needs optimization   "], "/r/f.py", "f.py", ["#debt:"])
        assert len(recs) == 1
        assert recs[0].description == "needs optimization"
        assert recs[0].line_number == 1
        assert type(recs[0]) is DebtRecord

    def test_multiple_markers_on_one_line(self) -> None:
        recs = scan_lines(["// #debt: a #todo: b"], "/r/f", "f", ["#debt:", "#todo:"])
        assert [r.marker for r in recs] == ["#debt:", "#todo:"]
        assert recs[0].description == "a #todo: b"
        assert recs[1].description == "b"

    def test_same_marker_twice_yields_one_record(self) -> None:
        recs = scan_lines(["#debt: one #debt: two"], "/r/f", "f", ["#debt:"])
        assert len(recs) == 1
        assert recs[0].description == "one #debt: two"

    def test_lines_without_markers(self) -> None:
        assert scan_lines(["plain", "", "debt: no hash"], "/r/f", "f", ["#debt:"]) == []


class TestStructured:
    def test_dir_path_and_tags(self) -> None:
        recs = scan_lines(["// DIR.TAG: /a/b #x #y"], "/r/f", "f", ["DIR.TAG:"])
        rec = recs[0]
        assert isinstance(rec, StructuredRecord)
        assert rec.dir_path == "/a/b"
        assert rec.tags == ("#x", "#y")
        assert rec.display_text == "/a/b #x #y"

    def test_duplicate_tags_kept_and_empty_segments_dropped(self) -> None:
        assert parse_structured(" /core/io ## perf #perf  # ") == ("/core/io", ("#perf", "#perf"))

    def test_no_tags(self) -> None:
        assert parse_structured("/only/path") == ("/only/path", ())


class TestScanFile:
    def test_crlf_lines(self, tmp_path) -> None:
        p = tmp_path / "win.js"
        p.write_bytes(b"a\r\n// #fixme: crlf\r\nb\r\n")
        recs = scan_file(str(p), str(tmp_path), ["#fixme:"])
        assert recs[0].line_number == 2
        assert recs[0].description == "crlf"
        assert recs[0].rel_path == "win.js"

    def test_binary_file_does_not_crash(self, tmp_path) -> None:
        p = tmp_path / "blob.js"
        p.write_bytes(bytes(range(256)) * 4)
        assert scan_file(str(p), str(tmp_path), ["#debt:"]) == []

    def test_unreadable_file_is_skipped_and_logged(self, tmp_path, caplog) -> None:
        missing = tmp_path / "gone.js"
        with caplog.at_level(logging.ERROR, logger="debtscan.scanner"):
            assert scan_file(str(missing), str(tmp_path), ["#debt:"]) == []
        assert any("gone.js" in r.message for r in caplog.records)


class TestScan:
    def test_end_to_end_counts(self, repo) -> None:
        recs = scan(str(repo), load_config(str(repo)))
        assert len(recs) == 3
        assert sum(r.marker == "#debt:" for r in recs) == 2
        assert sum(r.marker == "#todo:" for r in recs) == 1
        by_file = {(r.rel_path, r.line_number, r.marker) for r in recs}
        assert by_file == {
            ("src/a.js", 3, "#debt:"),
            ("src/b.js", 1, "#todo:"),
            ("src/b.js", 7, "#debt:"),
        }

    def test_paths(self, repo) -> None:
        for r in scan(str(repo), js_config()):
            assert os.path.isabs(r.file_path)
            assert r.file_path == os.path.join(str(repo), *r.rel_path.split("/"))

    def test_excluded_directories_never_yield_records(self, repo) -> None:
        cfg = js_config(exclude_patterns=["src/b.js"])
        recs = scan(str(repo), cfg)
        rels = [r.rel_path for r in recs]
        assert rels == ["src/a.js"]
        assert not any(r.startswith(("node_modules/", "dist/")) for r in rels)

    def test_excluded_dir_matching_include_pattern(self, repo) -> None:
        cfg = build_config({"include_patterns": ["node_modules/**/*.js", "**/*.js"]})
        assert not any("node_modules" in r.file_path for r in scan(str(repo), cfg))

    def test_report_dir_is_not_rescanned(self, repo) -> None:
        write(repo, "debt-reports/debt-report-x.md", "| #debt: old |\n")
        cfg = build_config({"include_patterns": ["**/*.md", "**/*.js"]})
        assert not any("debt-reports" in r.rel_path for r in scan(str(repo), cfg))

    def test_overlapping_includes_are_deduplicated(self, repo) -> None:
        cfg = build_config({"include_patterns": ["**/*.js", "src/*.js", "**/*.{js,ts}"]})
        files = collect_files(str(repo), cfg)
        assert len(files) == len(set(files)) == 2
        assert len(scan(str(repo), cfg)) == 3

    def test_records_follow_line_order_within_file(self, tmp_path) -> None:
        write(tmp_path, "m.js", "// #todo: 1\n// #debt: 2\n// #todo: 3\n")
        recs = scan(str(tmp_path), js_config())
        assert [r.line_number for r in recs] == [1, 2, 3]

    def test_idempotent(self, repo) -> None:
        cfg = load_config(str(repo))
        assert scan(str(repo), cfg) == scan(str(repo), cfg)

    def test_gitignore_respected_when_enabled(self, repo) -> None:
        write(repo, ".gitignore", "src/b.js\n")
        assert len(scan(str(repo), js_config())) == 3
        assert len(scan(str(repo), js_config(respect_gitignore=True))) == 1

    def test_custom_markers(self, tmp_path) -> None:
        write(tmp_path, "x.py", "# HACK: patched\n")
        cfg = build_config({"include_patterns": ["**/*.py"], "markers": ["HACK:"], "include_default_markers": False})
        recs = scan(str(tmp_path), cfg)
        assert [(r.marker, r.description) for r in recs] == [("HACK:", "patched")]


class TestRescanAfterReport:
    @pytest.mark.parametrize("report_dir", ["./reports", "reports/", "nested/../reports", "ABSOLUTE"])
    def test_reports_are_not_picked_up_by_the_next_scan(self, tmp_path, report_dir) -> None:
        if report_dir == "ABSOLUTE":
            report_dir = str(tmp_path / "reports")
        write(tmp_path, "debt-config.yml", f"report_dir: '{report_dir}'\n")
        write(tmp_path, "src/a.js", "// #debt: fix this\n")
        cfg = load_config(str(tmp_path))
        first = scan(str(tmp_path), cfg)
        assert len(first) == 1
        generate_report(first, os.path.join(str(tmp_path), cfg.report_dir))
        assert os.listdir(tmp_path / "reports")
        second = scan(str(tmp_path), cfg)
        assert second == first
