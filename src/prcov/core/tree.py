"""Build a nested directory tree from flat per-file coverage details.

Every prefix of every file path becomes a node keyed by its ``/``-joined
segments.  Directory coverage is rolled up bottom-up from direct children,
then siblings are sorted by name so that the tree (and everything rendered
from it) is independent of input order.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from prcov.core.summary import aggregate_stats
from prcov.models.coverage import CoverageStats, DirectoryNode

if TYPE_CHECKING:
    from collections.abc import Iterable

    from prcov.models.coverage import FileDetail

logger = logging.getLogger(__name__)

_SEPARATOR_RE = re.compile(r"[\\/]")
_KEY_SEPARATOR = "/"


class TreeInvariantError(RuntimeError):
    """Raised when a node's parent is missing from the node lookup."""


def split_path(path: str) -> list[str]:
    """Split *path* on ``/`` or ``\\``, dropping empty segments."""
    return [segment for segment in _SEPARATOR_RE.split(path) if segment]


def _depth(key: str) -> int:
    return key.count(_KEY_SEPARATOR) + 1


def _sort_key(node: DirectoryNode) -> str:
    return node.name


class DirectoryTreeBuilder:
    """Turn matched file details into a rooted ``DirectoryNode`` tree."""

    def build(self, file_details: Iterable[FileDetail]) -> DirectoryNode | None:
        """Build the coverage tree for *file_details*.

        Args:
            file_details: Matched changed files with slash-delimited paths.

        Returns:
            The root node, or None when there is nothing to show. When the
            files share one top-level directory that directory is the root;
            otherwise a virtual root with an empty name holds every
            top-level node.
        """
        node_map: dict[str, DirectoryNode] = {}
        root_names: list[str] = []

        for detail in file_details:
            self._insert(detail, node_map, root_names)

        if not node_map:
            return None

        self._calculate_directory_stats(node_map)
        self._sort_children(node_map)

        if len(root_names) == 1:
            return node_map[root_names[0]]

        virtual_root = DirectoryNode(name="", is_directory=True)
        virtual_root.children = sorted(
            (node_map[name] for name in root_names), key=_sort_key
        )
        virtual_root.coverage = aggregate_stats(child.coverage for child in virtual_root.children)
        logger.debug("Created virtual root over %d top-level nodes", len(root_names))
        return virtual_root

    def _insert(
        self,
        detail: FileDetail,
        node_map: dict[str, DirectoryNode],
        root_names: list[str],
    ) -> None:
        segments = split_path(detail.file)
        if not segments:
            logger.debug("Skipping file detail with empty path: %r", detail.file)
            return

        if segments[0] not in root_names:
            root_names.append(segments[0])

        last = len(segments) - 1
        for index, segment in enumerate(segments):
            key = _KEY_SEPARATOR.join(segments[: index + 1])
            node = node_map.get(key)
            if node is None:
                is_file = index == last
                node = DirectoryNode(
                    name=segment,
                    is_directory=not is_file,
                    coverage=detail.stats if is_file else CoverageStats.zero(),
                    file_detail=detail if is_file else None,
                )
                node_map[key] = node

            if index == 0:
                continue

            parent_key = _KEY_SEPARATOR.join(segments[:index])
            parent = node_map.get(parent_key)
            if parent is None:
                raise TreeInvariantError(f"Parent node {parent_key!r} missing for {key!r}")
            if not any(child is node for child in parent.children):
                parent.children.append(node)

    def _calculate_directory_stats(self, node_map: dict[str, DirectoryNode]) -> None:
        # Deepest first: every child is final before its parent is summed.
        for key in sorted(node_map, key=_depth, reverse=True):
            node = node_map[key]
            if node.is_directory and node.children:
                node.coverage = aggregate_stats(child.coverage for child in node.children)

    def _sort_children(self, node_map: dict[str, DirectoryNode]) -> None:
        for node in node_map.values():
            if node.children:
                node.children.sort(key=_sort_key)


def build_directory_tree(file_details: Iterable[FileDetail]) -> DirectoryNode | None:
    """Shortcut for ``DirectoryTreeBuilder().build(file_details)``."""
    return DirectoryTreeBuilder().build(file_details)
