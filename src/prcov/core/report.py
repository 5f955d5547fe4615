"""Combine a coverage dataset and a changed-file list into a coverage report."""

from __future__ import annotations

import logging
import posixpath
from typing import TYPE_CHECKING

from prcov.core.matcher import PathMatcher, normalize_path
from prcov.core.summary import calculate_summary
from prcov.core.tree import DirectoryTreeBuilder
from prcov.models.coverage import CoverageReport, FileDetail

if TYPE_CHECKING:
    from collections.abc import Sequence

    from prcov.models.coverage import ChangedFileRecord, CoverageData, DirectoryNode

logger = logging.getLogger(__name__)

_SAMPLE_SIZE = 5


def _detail_sort_key(detail: FileDetail) -> tuple[str, str]:
    return posixpath.dirname(normalize_path(detail.file)), detail.file


class CoverageReporter:
    """Match changed files to coverage records and summarize both sets."""

    def generate_report(
        self,
        coverage_data: CoverageData,
        changed_files: Sequence[ChangedFileRecord],
    ) -> CoverageReport:
        """Generate the coverage report for a pull request.

        Args:
            coverage_data: Per-file coverage keyed by the coverage tool's paths.
            changed_files: Files touched by the pull request.

        Returns:
            Report with the all-files and changed-files rollups and one
            detail row per changed file that has coverage. Changed files
            without coverage are listed in ``unmatched_files``.
        """
        all_files = calculate_summary(coverage_data.values())

        logger.info("Total files in coverage data: %d", len(coverage_data))
        logger.info("Changed files: %d", len(changed_files))
        logger.info("Sample coverage files: %s", ", ".join(list(coverage_data)[:_SAMPLE_SIZE]))
        logger.info(
            "Sample changed files: %s",
            ", ".join(changed.filename for changed in changed_files[:_SAMPLE_SIZE]),
        )

        matcher = PathMatcher(coverage_data.keys())
        matched = matcher.match_all(changed_files)
        matched_names = {changed.filename for changed, _ in matched}
        unmatched = [
            changed.filename for changed in changed_files if changed.filename not in matched_names
        ]

        logger.info(
            "Found coverage for %d out of %d changed files", len(matched), len(changed_files)
        )

        changed_summary = calculate_summary(coverage_data[key] for _, key in matched)
        file_details = sorted(
            (
                FileDetail.from_record(changed.filename, coverage_data[key])
                for changed, key in matched
            ),
            key=_detail_sort_key,
        )

        return CoverageReport(
            all_files=all_files,
            changed_files=changed_summary,
            file_details=file_details,
            changed_files_count=len(changed_files),
            unmatched_files=unmatched,
        )

    def build_tree(self, report: CoverageReport) -> DirectoryNode | None:
        """Build the nested directory tree for the report's file details."""
        return DirectoryTreeBuilder().build(report.file_details)
