"""Sum found/hit counts into coverage rollups.

Two rollup flavors exist and must stay distinct:

* ``calculate_summary`` feeds the report's summary lines and keeps
  percentages at full float precision (formatting happens at render time);
* ``aggregate_stats`` feeds directory nodes and rounds percentages to one
  decimal place when they are computed.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from prcov.models.coverage import CoverageStat, CoverageStats, CoverageSummary, percentage

if TYPE_CHECKING:
    from collections.abc import Iterable

    from prcov.models.coverage import FileCoverageRecord

_ONE_DECIMAL = Decimal("0.1")


def rounded_percentage(hit: int, total: int) -> float:
    """Return the percentage rounded half-up to one decimal place (0 if total is 0)."""
    if total <= 0:
        return 0.0
    return math.floor((hit / total) * 1000 + 0.5) / 10


def format_percentage(value: float) -> str:
    """Format a percentage with one decimal place; ties round up (6.25 -> "6.3")."""
    return str(Decimal(repr(value)).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def calculate_summary(records: Iterable[FileCoverageRecord]) -> CoverageSummary:
    """Reduce per-file coverage records into a single summary."""
    summary = CoverageSummary()
    for record in records:
        summary.lines_total += record.lines.found
        summary.lines_hit += record.lines.hit
        summary.functions_total += record.functions.found
        summary.functions_hit += record.functions.hit
        summary.branches_total += record.branches.found
        summary.branches_hit += record.branches.hit

    summary.lines_coverage = percentage(summary.lines_hit, summary.lines_total)
    summary.functions_coverage = percentage(summary.functions_hit, summary.functions_total)
    summary.branches_coverage = percentage(summary.branches_hit, summary.branches_total)
    return summary


def _rollup(stats: list[CoverageStat]) -> CoverageStat:
    hit = sum(stat.hit for stat in stats)
    total = sum(stat.total for stat in stats)
    return CoverageStat(hit=hit, total=total, percentage=rounded_percentage(hit, total))


def aggregate_stats(children: Iterable[CoverageStats]) -> CoverageStats:
    """Sum children's stats element-wise, recomputing rounded percentages.

    Percentages are derived from the summed counts, never averaged.
    """
    items = list(children)
    return CoverageStats(
        lines=_rollup([item.lines for item in items]),
        functions=_rollup([item.functions for item in items]),
        branches=_rollup([item.branches for item in items]),
    )
