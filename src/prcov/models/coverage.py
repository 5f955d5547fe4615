"""Coverage data models shared by the report pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from prcov.errors import InvalidCoverageError


def percentage(hit: int, found: int) -> float:
    """Return ``hit / found * 100``, or ``0.0`` when nothing was found."""
    if found > 0:
        return (hit / found) * 100
    return 0.0


@dataclass(frozen=True)
class CoverageCounts:
    """Found/hit counts for one coverage category."""

    found: int = 0
    """Number of instrumented items (lines, functions or branches)."""

    hit: int = 0
    """Number of instrumented items executed at least once."""

    def __post_init__(self) -> None:
        if self.found < 0 or self.hit < 0:
            raise InvalidCoverageError(
                f"Coverage counts must be non-negative (found={self.found}, hit={self.hit})"
            )
        if self.hit > self.found:
            raise InvalidCoverageError(
                f"Coverage hit count exceeds found count (found={self.found}, hit={self.hit})"
            )

    @property
    def percentage(self) -> float:
        """Return the hit ratio as a percentage (0.0-100.0)."""
        return percentage(self.hit, self.found)


@dataclass(frozen=True)
class FileCoverageRecord:
    """Per-file coverage as produced by a coverage parser."""

    file: str
    """Source path exactly as recorded by the coverage tool."""

    lines: CoverageCounts = field(default_factory=CoverageCounts)
    functions: CoverageCounts = field(default_factory=CoverageCounts)
    branches: CoverageCounts = field(default_factory=CoverageCounts)


CoverageData = dict[str, FileCoverageRecord]
"""Coverage dataset keyed by the path recorded by the coverage tool."""


class ChangeStatus(Enum):
    """Status of a file touched by a pull request."""

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    RENAMED = "renamed"
    COPIED = "copied"
    CHANGED = "changed"
    UNCHANGED = "unchanged"

    @classmethod
    def parse(cls, value: str) -> ChangeStatus:
        """Map a status string to a member, falling back to ``CHANGED``."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.CHANGED


@dataclass(frozen=True)
class ChangedFileRecord:
    """A file touched by the revision under review."""

    filename: str
    """Repository-relative path of the changed file."""

    status: ChangeStatus = ChangeStatus.MODIFIED
    """How the file was changed."""


@dataclass
class CoverageStat:
    """Hit/total counts with a derived percentage."""

    hit: int = 0
    total: int = 0
    percentage: float = 0.0

    @classmethod
    def from_counts(cls, counts: CoverageCounts) -> CoverageStat:
        """Build a stat carrying the full-precision percentage of *counts*."""
        return cls(hit=counts.hit, total=counts.found, percentage=counts.percentage)

    def copy(self) -> CoverageStat:
        return CoverageStat(hit=self.hit, total=self.total, percentage=self.percentage)


@dataclass
class CoverageStats:
    """Lines, functions and branches stats for a file or directory."""

    lines: CoverageStat = field(default_factory=CoverageStat)
    functions: CoverageStat = field(default_factory=CoverageStat)
    branches: CoverageStat = field(default_factory=CoverageStat)

    @classmethod
    def zero(cls) -> CoverageStats:
        """Return stats with every count and percentage at zero."""
        return cls()


@dataclass
class FileDetail:
    """Coverage of one matched changed file, as shown in the report."""

    file: str
    """Changed-file path (as reported by the code host, not the coverage tool)."""

    lines: CoverageStat = field(default_factory=CoverageStat)
    functions: CoverageStat = field(default_factory=CoverageStat)
    branches: CoverageStat = field(default_factory=CoverageStat)

    @classmethod
    def from_record(cls, file: str, record: FileCoverageRecord) -> FileDetail:
        """Build a detail row for *file* from its matched coverage record."""
        return cls(
            file=file,
            lines=CoverageStat.from_counts(record.lines),
            functions=CoverageStat.from_counts(record.functions),
            branches=CoverageStat.from_counts(record.branches),
        )

    @property
    def stats(self) -> CoverageStats:
        """Return a copy of this file's stats."""
        return CoverageStats(
            lines=self.lines.copy(),
            functions=self.functions.copy(),
            branches=self.branches.copy(),
        )


@dataclass
class CoverageSummary:
    """Coverage totals across a set of files."""

    lines_total: int = 0
    lines_hit: int = 0
    lines_coverage: float = 0.0
    """Line coverage percentage at full precision."""

    functions_total: int = 0
    functions_hit: int = 0
    functions_coverage: float = 0.0
    """Function coverage percentage at full precision."""

    branches_total: int = 0
    branches_hit: int = 0
    branches_coverage: float = 0.0
    """Branch coverage percentage at full precision."""


@dataclass
class CoverageReport:
    """Result of matching a coverage dataset against a pull request."""

    all_files: CoverageSummary = field(default_factory=CoverageSummary)
    """Rollup over every file in the coverage dataset."""

    changed_files: CoverageSummary = field(default_factory=CoverageSummary)
    """Rollup over the changed files that have coverage."""

    file_details: list[FileDetail] = field(default_factory=list)
    """Matched changed files, ordered by directory then path."""

    changed_files_count: int = 0
    """Number of changed files considered, matched or not."""

    unmatched_files: list[str] = field(default_factory=list)
    """Changed files for which no coverage record was found."""


@dataclass
class DirectoryNode:
    """A directory or file in the nested coverage tree.

    The virtual root synthesized for multi-root trees is an ordinary directory
    node whose name is the empty string.
    """

    name: str
    is_directory: bool
    children: list[DirectoryNode] = field(default_factory=list)
    coverage: CoverageStats = field(default_factory=CoverageStats.zero)
    file_detail: FileDetail | None = None
    """Matched file detail, set on file (leaf) nodes only."""
