"""Core pipeline: path matching, rollups and the directory tree."""

from prcov.core.matcher import PathMatcher, normalize_path
from prcov.core.report import CoverageReporter
from prcov.core.summary import (
    aggregate_stats,
    calculate_summary,
    format_percentage,
    rounded_percentage,
)
from prcov.core.tree import DirectoryTreeBuilder, TreeInvariantError, build_directory_tree

__all__ = [
    "CoverageReporter",
    "DirectoryTreeBuilder",
    "PathMatcher",
    "TreeInvariantError",
    "aggregate_stats",
    "build_directory_tree",
    "calculate_summary",
    "format_percentage",
    "normalize_path",
    "rounded_percentage",
]
