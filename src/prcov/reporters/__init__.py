"""Reporters for outputting coverage reports."""

from __future__ import annotations

from prcov.reporters.github_comment import GitHubCommentReporter
from prcov.reporters.json_reporter import JSONReporter
from prcov.reporters.markdown_table import MarkdownTableGenerator
from prcov.reporters.terminal import reporter

__all__ = [
    "GitHubCommentReporter",
    "JSONReporter",
    "MarkdownTableGenerator",
    "reporter",
]
