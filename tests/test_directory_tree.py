"""Tests for core/tree.py: nested tree construction and directory rollups."""

from __future__ import annotations

import itertools

import pytest

from prcov.core.tree import DirectoryTreeBuilder, build_directory_tree, split_path
from prcov.models.coverage import CoverageStat, DirectoryNode, FileDetail


def _detail(path: str, lines: tuple[int, int], functions: tuple[int, int] = (0, 0),
            branches: tuple[int, int] = (0, 0)) -> FileDetail:
    """Build a detail from (hit, total) pairs."""

    def stat(pair: tuple[int, int]) -> CoverageStat:
        hit, total = pair
        return CoverageStat(hit=hit, total=total, percentage=hit / total * 100 if total else 0.0)

    return FileDetail(
        file=path, lines=stat(lines), functions=stat(functions), branches=stat(branches)
    )


def _shape(node: DirectoryNode) -> tuple[str, bool, list[object]]:
    return node.name, node.is_directory, [_shape(child) for child in node.children]


def _flatten(node: DirectoryNode) -> list[tuple[str, int, int, float]]:
    rows = [(node.name, node.coverage.lines.hit, node.coverage.lines.total,
             node.coverage.lines.percentage)]
    for child in node.children:
        rows.extend(_flatten(child))
    return rows


class TestSplitPath:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("src/a.ts", ["src", "a.ts"]),
            ("src\\lib\\a.ts", ["src", "lib", "a.ts"]),
            ("/abs//path/", ["abs", "path"]),
            ("", []),
        ],
    )
    def test_split(self, path: str, expected: list[str]) -> None:
        assert split_path(path) == expected


class TestDirectoryTreeBuilder:
    def test_empty_input_returns_none(self) -> None:
        assert DirectoryTreeBuilder().build([]) is None

    def test_single_top_level_directory_is_root(self) -> None:
        tree = build_directory_tree([_detail("utils/helper.ts", (8, 10))])

        assert tree is not None
        assert tree.name == "utils"
        assert tree.is_directory
        assert len(tree.children) == 1
        leaf = tree.children[0]
        assert leaf.name == "helper.ts"
        assert not leaf.is_directory
        assert leaf.file_detail is not None
        assert leaf.file_detail.file == "utils/helper.ts"
        assert (tree.coverage.lines.hit, tree.coverage.lines.total) == (8, 10)
        assert tree.coverage.lines.percentage == 80.0

    def test_multiple_roots_get_virtual_root(self) -> None:
        tree = build_directory_tree(
            [
                _detail("tests/a.test.ts", (1, 2)),
                _detail("src/a.ts", (3, 4)),
            ]
        )

        assert tree is not None
        assert tree.name == ""
        assert tree.is_directory
        assert [child.name for child in tree.children] == ["src", "tests"]
        assert (tree.coverage.lines.hit, tree.coverage.lines.total) == (4, 6)
        assert tree.coverage.lines.percentage == 66.7

    def test_single_file_without_directory(self) -> None:
        tree = build_directory_tree([_detail("README.ts", (1, 1))])

        assert tree is not None
        assert tree.name == "README.ts"
        assert not tree.is_directory
        assert tree.children == []

    def test_directory_rollup_sums_children(self) -> None:
        tree = build_directory_tree(
            [
                _detail("src/components/Button.tsx", (6, 10), (4, 5), (8, 10)),
                _detail("src/components/Input.tsx", (13, 26), (8, 11), (0, 0)),
                _detail("src/index.ts", (1, 4), (0, 1), (0, 0)),
            ]
        )

        assert tree is not None
        assert tree.name == "src"
        components = tree.children[0]
        assert components.name == "components"
        assert (components.coverage.lines.hit, components.coverage.lines.total) == (19, 36)
        assert components.coverage.lines.percentage == 52.8
        assert (components.coverage.functions.hit, components.coverage.functions.total) == (12, 16)
        assert components.coverage.functions.percentage == 75.0
        assert components.coverage.branches.percentage == 80.0

        assert (tree.coverage.lines.hit, tree.coverage.lines.total) == (20, 40)
        assert tree.coverage.lines.percentage == 50.0
        assert (tree.coverage.functions.hit, tree.coverage.functions.total) == (12, 17)

    def test_zero_totals_yield_zero_percentage(self) -> None:
        tree = build_directory_tree(
            [_detail("empty/one.ts", (0, 0)), _detail("empty/two.ts", (0, 0))]
        )

        assert tree is not None
        assert tree.name == "empty"
        assert len(tree.children) == 2
        assert (tree.coverage.lines.hit, tree.coverage.lines.total) == (0, 0)
        assert tree.coverage.lines.percentage == 0.0
        assert tree.coverage.functions.percentage == 0.0
        assert tree.coverage.branches.percentage == 0.0

    def test_children_sorted_by_name(self) -> None:
        tree = build_directory_tree(
            [
                _detail("src/z.ts", (1, 1)),
                _detail("src/B.ts", (1, 1)),
                _detail("src/a.ts", (1, 1)),
            ]
        )

        assert tree is not None
        # Ordinal comparison: uppercase sorts before lowercase.
        assert [child.name for child in tree.children] == ["B.ts", "a.ts", "z.ts"]

    def test_backslash_paths_share_nodes(self) -> None:
        tree = build_directory_tree(
            [_detail("src\\a.ts", (1, 2)), _detail("src/b.ts", (1, 2))]
        )

        assert tree is not None
        assert tree.name == "src"
        assert [child.name for child in tree.children] == ["a.ts", "b.ts"]

    def test_leaf_coverage_is_a_copy(self) -> None:
        detail = _detail("src/a.ts", (1, 2))
        tree = build_directory_tree([detail])

        assert tree is not None
        tree.children[0].coverage.lines.hit = 0
        assert detail.lines.hit == 1

    def test_result_independent_of_input_order(self) -> None:
        details = [
            _detail("src/components/Button.tsx", (6, 10)),
            _detail("src/utils/format.ts", (2, 3)),
            _detail("tests/button.test.ts", (9, 9)),
            _detail("src/index.ts", (0, 5)),
        ]
        expected_tree = build_directory_tree(details)
        assert expected_tree is not None
        expected = (_shape(expected_tree), _flatten(expected_tree))

        for permutation in itertools.permutations(details):
            tree = build_directory_tree(list(permutation))
            assert tree is not None
            assert (_shape(tree), _flatten(tree)) == expected
