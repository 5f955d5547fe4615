"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from prcov.core.summary import format_percentage
from prcov.reporters.markdown_table import DIRECTORY_ICON, FILE_ICON

if TYPE_CHECKING:
    from prcov.models.coverage import CoverageReport, CoverageStats, CoverageSummary, DirectoryNode

console = Console()

_GOOD_RATE = 80.0
_FAIR_RATE = 60.0
_VIRTUAL_ROOT_LABEL = "."


def _coverage_color(rate: float) -> str:
    """Return a Rich color name for a coverage percentage."""
    if rate >= _GOOD_RATE:
        return "green"
    if rate >= _FAIR_RATE:
        return "yellow"
    return "red"


def _percent(rate: float) -> Text:
    return Text(f"{format_percentage(rate)}%", style=_coverage_color(rate))


def _summary_row(label: str, summary: CoverageSummary) -> list[str | Text]:
    return [
        label,
        f"{summary.lines_hit}/{summary.lines_total}",
        _percent(summary.lines_coverage),
        f"{summary.functions_hit}/{summary.functions_total}",
        _percent(summary.functions_coverage),
        f"{summary.branches_hit}/{summary.branches_total}",
        _percent(summary.branches_coverage),
    ]


def _node_label(node: DirectoryNode) -> Text:
    icon = DIRECTORY_ICON if node.is_directory else FILE_ICON
    name = node.name or _VIRTUAL_ROOT_LABEL
    label = Text(f"{icon} {name}", style="bold" if node.is_directory else "")
    label.append("  ")
    label.append_text(_stats_text(node.coverage))
    return label


def _stats_text(stats: CoverageStats) -> Text:
    text = Text()
    parts = (("L", stats.lines), ("F", stats.functions), ("B", stats.branches))
    for index, (prefix, stat) in enumerate(parts):
        if index:
            text.append("  ")
        text.append(f"{prefix} {stat.hit}/{stat.total} ")
        text.append_text(_percent(stat.percentage))
    return text


class CLIReporter:
    """Rich terminal output for local coverage runs."""

    def __init__(self, output: Console | None = None) -> None:
        self.console = output if output is not None else console

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_summary(self, report: CoverageReport) -> None:
        """Print the all-files and changed-files rollups as a table."""
        table = Table(title="Coverage Summary", show_header=True, header_style="bold cyan")
        table.add_column("Scope")
        table.add_column("Lines", justify="right")
        table.add_column("Line %", justify="right")
        table.add_column("Functions", justify="right")
        table.add_column("Function %", justify="right")
        table.add_column("Branches", justify="right")
        table.add_column("Branch %", justify="right")

        table.add_row(*_summary_row("All files", report.all_files))
        table.add_row(*_summary_row("Changed files", report.changed_files))
        self.console.print(table)

        matched = len(report.file_details)
        self.console.print(
            f"Found coverage for {matched} out of {report.changed_files_count} changed files"
        )

    def print_tree(self, tree: DirectoryNode | None) -> None:
        """Print the nested directory tree."""
        if tree is None:
            self.print_warning("No changed files with coverage")
            return

        root = Tree(_node_label(tree))
        self._add_children(root, tree)
        self.console.print(root)

    def _add_children(self, branch: Tree, node: DirectoryNode) -> None:
        for child in node.children:
            sub = branch.add(_node_label(child))
            if child.is_directory:
                self._add_children(sub, child)

    def print_report(self, report: CoverageReport, tree: DirectoryNode | None) -> None:
        """Print the summary table followed by the directory tree."""
        self.print_summary(report)
        self.print_tree(tree)
        for path in report.unmatched_files:
            self.print_warning(f"No coverage for {path}")


reporter = CLIReporter()
