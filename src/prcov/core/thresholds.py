"""Minimum-coverage checks applied after a report is generated."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from prcov.core.summary import format_percentage
from prcov.errors import PrcovError

if TYPE_CHECKING:
    from prcov.models.coverage import CoverageReport

logger = logging.getLogger(__name__)


class CoverageThresholdError(PrcovError):
    """Raised when line coverage falls below a configured minimum."""


def _format_threshold(value: float) -> str:
    return f"{value:g}"


def check_coverage_thresholds(
    report: CoverageReport,
    *,
    all_files_minimum: float = 0.0,
    changed_files_minimum: float = 0.0,
) -> None:
    """Fail when line coverage is below the configured minimums.

    A minimum of zero (or less) disables the corresponding check. The
    all-files minimum is checked first.

    Raises:
        CoverageThresholdError: If a check fails.
    """
    if all_files_minimum > 0:
        coverage = report.all_files.lines_coverage
        if coverage < all_files_minimum:
            raise CoverageThresholdError(
                f"All files coverage ({format_percentage(coverage)}%) "
                "is below minimum threshold "
                f"({_format_threshold(all_files_minimum)}%)"
            )
        logger.info("All files coverage %.1f%% meets %s%%", coverage, all_files_minimum)

    if changed_files_minimum > 0:
        coverage = report.changed_files.lines_coverage
        if coverage < changed_files_minimum:
            raise CoverageThresholdError(
                f"Changed files coverage ({format_percentage(coverage)}%) "
                "is below minimum threshold "
                f"({_format_threshold(changed_files_minimum)}%)"
            )
        logger.info("Changed files coverage %.1f%% meets %s%%", coverage, changed_files_minimum)
