"""Data models for prcov."""

from prcov.models.coverage import (
    ChangedFileRecord,
    ChangeStatus,
    CoverageCounts,
    CoverageData,
    CoverageReport,
    CoverageStat,
    CoverageStats,
    CoverageSummary,
    DirectoryNode,
    FileCoverageRecord,
    FileDetail,
)

__all__ = [
    "ChangeStatus",
    "ChangedFileRecord",
    "CoverageCounts",
    "CoverageData",
    "CoverageReport",
    "CoverageStat",
    "CoverageStats",
    "CoverageSummary",
    "DirectoryNode",
    "FileCoverageRecord",
    "FileDetail",
]
