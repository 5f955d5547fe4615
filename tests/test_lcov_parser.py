"""Tests for the LCOV tracefile parser (adapters/lcov.py)."""

from __future__ import annotations

from pathlib import Path

import pytest

from prcov.adapters.lcov import LcovParseError, LcovParser, parse_lcov_file
from prcov.models.coverage import CoverageCounts

_SAMPLE_LCOV = """\
TN:
SF:src/math.ts
FN:1,add
FN:5,subtract
FNDA:3,add
FNDA:0,subtract
FNF:2
FNH:1
DA:1,3
DA:2,3
DA:5,0
DA:6,0
LF:4
LH:2
BRDA:2,0,0,3
BRDA:2,0,1,-
BRF:2
BRH:1
end_of_record
SF:./src/utils/format.ts
DA:1,1
DA:2,1
end_of_record
"""


@pytest.fixture
def parser() -> LcovParser:
    return LcovParser()


class TestParseString:
    def test_summary_counts(self, parser: LcovParser) -> None:
        data = parser.parse_string(_SAMPLE_LCOV)

        record = data["src/math.ts"]
        assert record.file == "src/math.ts"
        assert record.lines == CoverageCounts(found=4, hit=2)
        assert record.functions == CoverageCounts(found=2, hit=1)
        assert record.branches == CoverageCounts(found=2, hit=1)

    def test_keys_are_raw_sf_paths(self, parser: LcovParser) -> None:
        data = parser.parse_string(_SAMPLE_LCOV)
        assert list(data) == ["src/math.ts", "./src/utils/format.ts"]

    def test_counts_derived_without_summary_lines(self, parser: LcovParser) -> None:
        content = """\
SF:a.ts
FN:1,f
FN:4,g
FNDA:2,f
DA:1,2
DA:2,0
DA:3,5
BRDA:3,0,0,1
BRDA:3,0,1,0
BRDA:3,0,2,-
end_of_record
"""
        record = parser.parse_string(content)["a.ts"]

        assert record.lines == CoverageCounts(found=3, hit=2)
        assert record.functions == CoverageCounts(found=2, hit=1)
        assert record.branches == CoverageCounts(found=3, hit=1)

    def test_summary_lines_take_precedence(self, parser: LcovParser) -> None:
        content = "SF:a.ts\nDA:1,1\nLF:10\nLH:7\nend_of_record\n"
        record = parser.parse_string(content)["a.ts"]
        assert record.lines == CoverageCounts(found=10, hit=7)

    def test_hit_clamped_to_found(self, parser: LcovParser) -> None:
        content = "SF:a.ts\nLF:2\nLH:5\nend_of_record\n"
        record = parser.parse_string(content)["a.ts"]
        assert record.lines == CoverageCounts(found=2, hit=2)

    def test_missing_end_of_record(self, parser: LcovParser) -> None:
        data = parser.parse_string("SF:a.ts\nDA:1,1\n")
        assert data["a.ts"].lines == CoverageCounts(found=1, hit=1)

    def test_duplicate_record_last_wins(self, parser: LcovParser) -> None:
        content = (
            "SF:a.ts\nLF:1\nLH:0\nend_of_record\n"
            "SF:a.ts\nLF:4\nLH:4\nend_of_record\n"
        )
        assert parser.parse_string(content)["a.ts"].lines == CoverageCounts(found=4, hit=4)

    def test_malformed_lines_skipped(self, parser: LcovParser) -> None:
        content = "SF:a.ts\nDA:x,1\nDA:2,1\nLF:oops\nnonsense\nend_of_record\n"
        record = parser.parse_string(content)["a.ts"]
        assert record.lines == CoverageCounts(found=1, hit=1)

    def test_lines_outside_records_ignored(self, parser: LcovParser) -> None:
        assert parser.parse_string("TN:test\nDA:1,1\nend_of_record\n") == {}

    def test_windows_line_endings(self, parser: LcovParser) -> None:
        data = parser.parse_string("SF:src\\a.ts\r\nDA:1,0\r\nend_of_record\r\n")
        assert data["src\\a.ts"].lines == CoverageCounts(found=1, hit=0)

    def test_empty_content(self, parser: LcovParser) -> None:
        assert parser.parse_string("") == {}


class TestParseFile:
    def test_reads_file(self, tmp_path: Path) -> None:
        lcov = tmp_path / "lcov.info"
        lcov.write_text(_SAMPLE_LCOV, encoding="utf-8")

        data = parse_lcov_file(lcov)

        assert set(data) == {"src/math.ts", "./src/utils/format.ts"}

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(LcovParseError, match="LCOV file not found"):
            LcovParser().parse_file(tmp_path / "missing.info")

    def test_directory_is_not_a_file(self, tmp_path: Path) -> None:
        with pytest.raises(LcovParseError):
            LcovParser().parse_file(tmp_path)
