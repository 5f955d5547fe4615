"""Render a coverage directory tree as a nested Markdown table."""

from __future__ import annotations

from typing import TYPE_CHECKING

from prcov.core.summary import format_percentage

if TYPE_CHECKING:
    from prcov.models.coverage import CoverageStat, DirectoryNode

TABLE_HEADER = (
    "| **File** | **Lines** | **Line %** | **Functions** | **Function %** "
    "| **Branches** | **Branch %** |"
)
TABLE_SEPARATOR = "|------|-------|--------|-----------|------------|----------|----------|"

DIRECTORY_ICON = "📁"
FILE_ICON = "📄"

# Markdown renderers collapse plain spaces, so indentation uses HTML entities.
_INDENT_UNIT = "&emsp;"
_SPACER_DEPTH_1 = " "
_SPACER_DEPTH_2 = "&nbsp; "
_SPACER_DEEPER = "&nbsp;&nbsp; "
_DEPTH_2 = 2


def get_indentation(depth: int) -> str:
    """Return the name-cell prefix for a node at *depth* (root is 0)."""
    if depth <= 0:
        return ""
    if depth == 1:
        spacer = _SPACER_DEPTH_1
    elif depth == _DEPTH_2:
        spacer = _SPACER_DEPTH_2
    else:
        spacer = _SPACER_DEEPER
    return _INDENT_UNIT * depth + spacer


def _emphasize(value: str, *, bold: bool) -> str:
    return f"**{value}**" if bold else value


def _stat_cells(stat: CoverageStat, *, bold: bool) -> list[str]:
    return [
        _emphasize(f"{stat.hit}/{stat.total}", bold=bold),
        _emphasize(f"{format_percentage(stat.percentage)}%", bold=bold),
    ]


class MarkdownTableGenerator:
    """Render a ``DirectoryNode`` tree, one row per node in pre-order."""

    def generate_table(self, directory_tree: DirectoryNode | None) -> str:
        """Return the table as text, or an empty string when there is no tree."""
        if directory_tree is None:
            return ""

        rows = [TABLE_HEADER, TABLE_SEPARATOR]
        self._generate_rows(directory_tree, 0, rows)
        return "\n".join(rows)

    def _generate_rows(self, node: DirectoryNode, depth: int, rows: list[str]) -> None:
        rows.append(self.format_row(node, depth))
        if node.is_directory:
            for child in node.children:
                self._generate_rows(child, depth + 1, rows)

    def format_row(self, node: DirectoryNode, depth: int) -> str:
        """Format a single table row for *node* at *depth*."""
        bold = node.is_directory
        icon = DIRECTORY_ICON if node.is_directory else FILE_ICON
        name = f"{get_indentation(depth)}{icon} {node.name}"

        cells = [_emphasize(name, bold=bold)]
        cells.extend(_stat_cells(node.coverage.lines, bold=bold))
        cells.extend(_stat_cells(node.coverage.functions, bold=bold))
        cells.extend(_stat_cells(node.coverage.branches, bold=bold))
        return "| " + " | ".join(cells) + " |"
