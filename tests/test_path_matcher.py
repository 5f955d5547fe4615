"""Tests for core/matcher.py: exact, normalized and suffix path matching."""

from __future__ import annotations

import pytest

from prcov.core.matcher import PathMatcher, normalize_path
from prcov.models.coverage import ChangedFileRecord


class TestNormalizePath:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("src/a.ts", "src/a.ts"),
            ("./src/a.ts", "src/a.ts"),
            ("././src/a.ts", "src/a.ts"),
            ("src\\lib\\a.ts", "src/lib/a.ts"),
            (".\\src\\a.ts", "src/a.ts"),
            ("", ""),
        ],
    )
    def test_normalize(self, raw: str, expected: str) -> None:
        assert normalize_path(raw) == expected


class TestPathMatcher:
    def test_exact_match(self) -> None:
        matcher = PathMatcher(["src/a.ts", "src/b.ts"])
        assert matcher.match("src/b.ts") == "src/b.ts"

    def test_normalized_match_returns_original_key(self) -> None:
        matcher = PathMatcher(["./src/a.ts"])
        assert matcher.match("src/a.ts") == "./src/a.ts"

    def test_backslash_key_matches(self) -> None:
        matcher = PathMatcher(["src\\utils\\helper.ts"])
        assert matcher.match("src/utils/helper.ts") == "src\\utils\\helper.ts"

    def test_absolute_key_matches_by_suffix(self) -> None:
        matcher = PathMatcher(["/home/runner/work/repo/src/a.ts"])
        assert matcher.match("src/a.ts") == "/home/runner/work/repo/src/a.ts"

    def test_changed_path_longer_than_key(self) -> None:
        matcher = PathMatcher(["lib/a.ts"])
        assert matcher.match("packages/core/lib/a.ts") == "lib/a.ts"

    def test_exact_wins_over_suffix(self) -> None:
        matcher = PathMatcher(["other/src/a.ts", "src/a.ts"])
        assert matcher.match("src/a.ts") == "src/a.ts"

    def test_first_normalized_key_wins(self) -> None:
        matcher = PathMatcher(["./src/a.ts", "src\\a.ts"])
        assert matcher.match("././src/a.ts") == "./src/a.ts"

    def test_no_match(self) -> None:
        matcher = PathMatcher(["src/a.ts"])
        assert matcher.match("docs/readme.md") is None

    def test_empty_path_does_not_match(self) -> None:
        matcher = PathMatcher(["src/a.ts"])
        assert matcher.match("") is None

    def test_empty_dataset(self) -> None:
        assert PathMatcher([]).match("src/a.ts") is None

    def test_suffix_match_is_not_segment_aware(self) -> None:
        # "ba.ts" ends with "a.ts", so a bare file name can match a longer one.
        matcher = PathMatcher(["src/ba.ts"])
        assert matcher.match("a.ts") == "src/ba.ts"


class TestMatchAll:
    def test_keeps_order_and_drops_misses(self) -> None:
        matcher = PathMatcher(["./b.ts", "a.ts"])
        changed = [
            ChangedFileRecord(filename="b.ts"),
            ChangedFileRecord(filename="missing.py"),
            ChangedFileRecord(filename="a.ts"),
        ]

        result = matcher.match_all(changed)

        assert [(c.filename, key) for c, key in result] == [("b.ts", "./b.ts"), ("a.ts", "a.ts")]

    def test_empty_changed_list(self) -> None:
        assert PathMatcher(["a.ts"]).match_all([]) == []
