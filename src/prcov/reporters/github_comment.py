"""GitHub comment reporter for posting coverage reports to PRs.

Formats the all-files and changed-files summaries plus the nested
per-directory table, and upserts the result as a single PR comment
identified by a hidden marker.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from prcov.core.summary import format_percentage
from prcov.reporters.markdown_table import MarkdownTableGenerator
from prcov.utils.git import GitHubAPI, compute_comment_marker

if TYPE_CHECKING:
    from prcov.models.coverage import CoverageReport, CoverageSummary, DirectoryNode
    from prcov.utils.git import GitHubPRInfo

logger = logging.getLogger(__name__)

COMMENT_MARKER_PREFIX = "prcov:report"

_GOOD_COVERAGE = 80.0
_FAIR_COVERAGE = 60.0


def coverage_status(percentage: float) -> str:
    """Return the status emoji for a line coverage percentage."""
    if percentage >= _GOOD_COVERAGE:
        return "✅"
    if percentage >= _FAIR_COVERAGE:
        return "⚠️"
    return "❌"


def _format_summary(title: str, summary: CoverageSummary) -> list[str]:
    status = coverage_status(summary.lines_coverage)
    return [
        f"### {title}",
        f"- Lines: {summary.lines_hit}/{summary.lines_total} "
        f"({format_percentage(summary.lines_coverage)}%) {status}",
        f"- Functions: {summary.functions_hit}/{summary.functions_total} "
        f"({format_percentage(summary.functions_coverage)}%)",
        f"- Branches: {summary.branches_hit}/{summary.branches_total} "
        f"({format_percentage(summary.branches_coverage)}%)",
        "",
    ]


def format_report_body(report: CoverageReport, tree: DirectoryNode | None) -> str:
    """Format the report as the Markdown comment body (without the marker).

    Args:
        report: Generated coverage report.
        tree: Directory tree built from ``report.file_details``.

    Returns:
        Markdown text. The nested table is omitted when no changed file has
        coverage.
    """
    status = coverage_status(report.all_files.lines_coverage)

    sections: list[str] = [f"## LCOV Report {status}", ""]
    sections.extend(_format_summary("All Files", report.all_files))
    sections.extend(_format_summary("Changed Files", report.changed_files))

    if report.file_details:
        sections.append("Files changed:")
        sections.append("")
        sections.append(MarkdownTableGenerator().generate_table(tree))
        sections.append("")

    return "\n".join(sections)


class GitHubCommentReporter:
    """Reporter that posts coverage reports as GitHub PR comments."""

    def __init__(self, api: GitHubAPI | None = None, github_token: str | None = None) -> None:
        """Initialize the GitHub comment reporter.

        Args:
            api: Preconfigured API client. Built from *github_token* when omitted.
            github_token: GitHub token. If not provided, will try to read from
                the GITHUB_TOKEN environment variable.

        Raises:
            GitHubAPIError: If no API client is given and no token is available.
        """
        self._api = api if api is not None else GitHubAPI(token=github_token)
        self._marker = compute_comment_marker(COMMENT_MARKER_PREFIX)

    @property
    def marker(self) -> str:
        """Hidden HTML marker identifying prcov's comment."""
        return self._marker

    def format_report(self, report: CoverageReport, tree: DirectoryNode | None) -> str:
        """Format the report as the Markdown comment body (without the marker)."""
        return format_report_body(report, tree)

    def post_report(
        self,
        pr_info: GitHubPRInfo,
        body: str,
        *,
        update_existing: bool = True,
    ) -> dict[str, str]:
        """Post (or update) the coverage comment on a pull request.

        Args:
            pr_info: Pull request information.
            body: Comment body from :meth:`format_report`.
            update_existing: Update prcov's previous comment instead of adding one.

        Returns:
            Dict with status and comment URL.

        Raises:
            GitHubAPIError: If posting the comment fails.
        """
        logger.info(
            "Posting coverage report to PR #%d in %s/%s",
            pr_info.pr_number,
            pr_info.owner,
            pr_info.repo,
        )

        result = self._api.upsert_comment(
            pr_info,
            f"{self._marker}\n{body}",
            self._marker,
            update_existing=update_existing,
        )

        logger.info("Successfully posted comment: %s", result.get("html_url"))

        return {
            "status": "success",
            "comment_url": str(result.get("html_url", "")),
        }
