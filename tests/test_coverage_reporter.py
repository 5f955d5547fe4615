"""Tests for core/report.py: matching changed files into a report."""

from __future__ import annotations

import logging

import pytest

from prcov.core.report import CoverageReporter
from prcov.models.coverage import ChangedFileRecord, CoverageCounts, FileCoverageRecord


def _record(path: str, found: int, hit: int) -> FileCoverageRecord:
    return FileCoverageRecord(file=path, lines=CoverageCounts(found=found, hit=hit))


@pytest.fixture
def coverage_data() -> dict[str, FileCoverageRecord]:
    return {
        "./src/a.ts": _record("./src/a.ts", 10, 8),
        "src/utils/b.ts": _record("src/utils/b.ts", 10, 2),
        "lib/c.ts": _record("lib/c.ts", 20, 20),
    }


@pytest.fixture
def reporter() -> CoverageReporter:
    return CoverageReporter()


class TestGenerateReport:
    def test_all_files_covers_whole_dataset(
        self, reporter: CoverageReporter, coverage_data: dict[str, FileCoverageRecord]
    ) -> None:
        report = reporter.generate_report(coverage_data, [])

        assert report.all_files.lines_total == 40
        assert report.all_files.lines_hit == 30
        assert report.all_files.lines_coverage == 75.0
        assert report.changed_files.lines_total == 0
        assert report.file_details == []
        assert report.changed_files_count == 0

    def test_changed_files_summary_and_details(
        self, reporter: CoverageReporter, coverage_data: dict[str, FileCoverageRecord]
    ) -> None:
        changed = [
            ChangedFileRecord(filename="src/utils/b.ts"),
            ChangedFileRecord(filename="src/a.ts"),
            ChangedFileRecord(filename="README.md"),
        ]

        report = reporter.generate_report(coverage_data, changed)

        assert report.changed_files.lines_total == 20
        assert report.changed_files.lines_hit == 10
        assert report.changed_files.lines_coverage == 50.0
        assert report.changed_files_count == 3
        assert report.unmatched_files == ["README.md"]
        # Details use the changed-file path, ordered by directory then path.
        assert [d.file for d in report.file_details] == ["src/a.ts", "src/utils/b.ts"]
        assert report.file_details[0].lines.percentage == 80.0

    def test_logs_match_count(
        self,
        reporter: CoverageReporter,
        coverage_data: dict[str, FileCoverageRecord],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.INFO, logger="prcov.core.report"):
            reporter.generate_report(coverage_data, [ChangedFileRecord(filename="lib/c.ts")])

        assert "Found coverage for 1 out of 1 changed files" in caplog.text

    def test_full_precision_in_summary(self, reporter: CoverageReporter) -> None:
        data = {"a.ts": _record("a.ts", 3, 1)}
        report = reporter.generate_report(data, [ChangedFileRecord(filename="a.ts")])

        assert report.changed_files.lines_coverage == pytest.approx(100 / 3)


class TestBuildTree:
    def test_tree_from_details(
        self, reporter: CoverageReporter, coverage_data: dict[str, FileCoverageRecord]
    ) -> None:
        report = reporter.generate_report(
            coverage_data,
            [ChangedFileRecord(filename="src/a.ts"), ChangedFileRecord(filename="lib/c.ts")],
        )

        tree = reporter.build_tree(report)

        assert tree is not None
        assert tree.name == ""
        assert [child.name for child in tree.children] == ["lib", "src"]

    def test_no_details_no_tree(self, reporter: CoverageReporter) -> None:
        report = reporter.generate_report({}, [ChangedFileRecord(filename="a.ts")])
        assert reporter.build_tree(report) is None
