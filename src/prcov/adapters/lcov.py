"""LCOV tracefile parser.

Reads the text format written by lcov/geninfo, Istanbul/nyc, c8, vitest,
jest, grcov and friends and reduces each ``SF:`` record to found/hit counts
for lines, functions and branches.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from prcov.errors import PrcovError
from prcov.models.coverage import CoverageCounts, CoverageData, FileCoverageRecord

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


class LcovParseError(PrcovError):
    """Raised when an LCOV file cannot be read."""


# ── Constants ────────────────────────────────────────────────────

# LCOV record keys
_LCOV_SF = "SF"
_LCOV_FN = "FN"
_LCOV_FNDA = "FNDA"
_LCOV_FNF = "FNF"
_LCOV_FNH = "FNH"
_LCOV_DA = "DA"
_LCOV_LF = "LF"
_LCOV_LH = "LH"
_LCOV_BRDA = "BRDA"
_LCOV_BRF = "BRF"
_LCOV_BRH = "BRH"
_LCOV_END = "end_of_record"
_LCOV_FN_PARTS = 2
_LCOV_DA_PARTS = 2
_LCOV_BRDA_PARTS = 4
_LCOV_NOT_TAKEN = "-"

_SUMMARY_KEYS = {
    _LCOV_LF: "lines_found",
    _LCOV_LH: "lines_hit",
    _LCOV_FNF: "functions_found",
    _LCOV_FNH: "functions_hit",
    _LCOV_BRF: "branches_found",
    _LCOV_BRH: "branches_hit",
}


@dataclass
class _LcovRecordState:
    path: str
    functions: list[str] = field(default_factory=list)
    function_hits: dict[str, int] = field(default_factory=dict)
    lines: dict[int, int] = field(default_factory=dict)
    branches: list[tuple[int, int, int, int]] = field(default_factory=list)
    summary: dict[str, int] = field(default_factory=dict)


def _counts(found: int, hit: int) -> CoverageCounts:
    found = max(found, 0)
    return CoverageCounts(found=found, hit=min(max(hit, 0), found))


class LcovParser:
    """Parse LCOV tracefiles into a per-file coverage dataset."""

    def parse_file(self, lcov_file: Path) -> CoverageData:
        """Parse an LCOV file.

        Args:
            lcov_file: Path to the ``.info``/``.lcov`` tracefile.

        Returns:
            Coverage records keyed by their ``SF:`` path.

        Raises:
            LcovParseError: If the file is missing or unreadable.
        """
        if not lcov_file.is_file():
            raise LcovParseError(f"LCOV file not found: {lcov_file}")
        try:
            content = lcov_file.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise LcovParseError(f"Failed to read LCOV file {lcov_file}: {exc}") from exc

        data = self.parse_string(content)
        logger.info("Parsed %d file records from %s", len(data), lcov_file)
        return data

    def parse_string(self, content: str) -> CoverageData:
        """Parse LCOV text into coverage records."""
        files: CoverageData = {}
        state: _LcovRecordState | None = None

        for raw_line in content.splitlines():
            line = raw_line.strip()
            if not line:
                continue
            if line == _LCOV_END:
                if state is not None:
                    self._flush(files, state)
                state = None
                continue

            key, sep, value = line.partition(":")
            if not sep:
                continue
            value = value.strip()

            if key == _LCOV_SF:
                if state is not None:
                    self._flush(files, state)
                state = _LcovRecordState(path=value)
            elif state is not None:
                self._apply_key(key, value, state)

        if state is not None:
            self._flush(files, state)
        return files

    def _apply_key(self, key: str, value: str, state: _LcovRecordState) -> None:
        try:
            if key == _LCOV_FN:
                parts = value.split(",", 1)
                if len(parts) == _LCOV_FN_PARTS:
                    name = parts[1].strip()
                    if name not in state.functions:
                        state.functions.append(name)
            elif key == _LCOV_FNDA:
                parts = value.split(",", 1)
                if len(parts) == _LCOV_FN_PARTS:
                    name = parts[1].strip()
                    state.function_hits[name] = state.function_hits.get(name, 0) + int(parts[0])
            elif key == _LCOV_DA:
                parts = value.split(",")
                if len(parts) >= _LCOV_DA_PARTS:
                    line_number = int(parts[0])
                    state.lines[line_number] = state.lines.get(line_number, 0) + int(parts[1])
            elif key == _LCOV_BRDA:
                parts = value.split(",")
                if len(parts) >= _LCOV_BRDA_PARTS:
                    taken_s = parts[3].strip()
                    taken = 0 if taken_s == _LCOV_NOT_TAKEN else int(taken_s)
                    state.branches.append((int(parts[0]), int(parts[1]), int(parts[2]), taken))
            elif key in _SUMMARY_KEYS:
                state.summary[_SUMMARY_KEYS[key]] = int(value)
        except ValueError:
            logger.debug("Skipping malformed LCOV line in %s: %s:%s", state.path, key, value)

    def _flush(self, files: CoverageData, state: _LcovRecordState) -> None:
        if state.path in files:
            logger.debug("Duplicate LCOV record for %s; keeping the last one", state.path)
        files[state.path] = self._build_record(state)

    def _build_record(self, state: _LcovRecordState) -> FileCoverageRecord:
        summary = state.summary

        lines_found = summary.get("lines_found", len(state.lines))
        lines_hit = summary.get(
            "lines_hit", sum(1 for count in state.lines.values() if count > 0)
        )

        functions_found = summary.get("functions_found", len(state.functions))
        functions_hit = summary.get(
            "functions_hit", sum(1 for count in state.function_hits.values() if count > 0)
        )

        branches_found = summary.get("branches_found", len(state.branches))
        branches_hit = summary.get(
            "branches_hit", sum(1 for *_, taken in state.branches if taken > 0)
        )

        return FileCoverageRecord(
            file=state.path,
            lines=_counts(lines_found, lines_hit),
            functions=_counts(functions_found, functions_hit),
            branches=_counts(branches_found, branches_hit),
        )


def parse_lcov_file(lcov_file: Path) -> CoverageData:
    """Parse *lcov_file* with a fresh ``LcovParser``."""
    return LcovParser().parse_file(lcov_file)
