"""Pull request coverage run: parse, match, comment, stage artifact, enforce."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from prcov.adapters.lcov import LcovParser
from prcov.core.report import CoverageReporter
from prcov.core.thresholds import check_coverage_thresholds
from prcov.errors import PrcovError
from prcov.reporters.github_comment import GitHubCommentReporter
from prcov.reporters.json_reporter import write_artifact

if TYPE_CHECKING:
    from prcov.config import PrcovConfig
    from prcov.models.coverage import CoverageReport, DirectoryNode
    from prcov.utils.git import GitHubAPI, GitHubPRInfo

logger = logging.getLogger(__name__)


class ActionError(PrcovError):
    """Raised when the run cannot start (bad context or missing inputs)."""


@dataclass
class ActionResult:
    """Outcome of a completed pull request coverage run."""

    report: CoverageReport
    """Generated coverage report."""

    tree: DirectoryNode | None
    """Directory tree rendered in the comment."""

    body: str
    """Comment body (without the hidden marker)."""

    comment_url: str = ""
    """URL of the posted comment."""

    artifact_dir: Path | None = None
    """Staged artifact directory, if an artifact was requested and written."""


class PrCoverageAction:
    """Run the full pull request coverage flow against GitHub."""

    def __init__(
        self,
        config: PrcovConfig,
        pr_info: GitHubPRInfo | None,
        api: GitHubAPI,
    ) -> None:
        self._config = config
        self._pr_info = pr_info
        self._api = api
        self._parser = LcovParser()
        self._reporter = CoverageReporter()
        self._comment_reporter = GitHubCommentReporter(api=api)

    def execute(self) -> ActionResult:
        """Execute the run.

        Steps: change to the working directory, parse the LCOV file, fetch
        the pull request's changed files, build the report, upsert the PR
        comment, stage the artifact, then enforce coverage thresholds. The
        comment is posted before thresholds are checked so that failing
        runs still show their report.

        Returns:
            The run result.

        Raises:
            ActionError: If not in a pull request context or the LCOV file is missing.
            LcovParseError: If the LCOV file cannot be read.
            GitHubAPIError: If fetching files or posting the comment fails.
            CoverageThresholdError: If coverage is below a configured minimum.
        """
        logger.info("Starting PR coverage report...")

        if self._pr_info is None:
            raise ActionError("prcov action can only be run on pull request events")
        pr_info = self._pr_info

        if self._config.working_directory:
            os.chdir(self._config.working_directory)
            logger.info("Changed working directory to: %s", self._config.working_directory)

        lcov_path = Path(self._config.coverage.lcov_file).resolve()
        if not lcov_path.is_file():
            raise ActionError(f"LCOV file not found: {lcov_path}")

        logger.info("Parsing LCOV file: %s", lcov_path)
        coverage_data = self._parser.parse_file(lcov_path)

        logger.info("Getting changed files from PR...")
        changed_files = self._api.list_pull_request_files(pr_info)

        logger.info("Generating coverage report...")
        report = self._reporter.generate_report(coverage_data, changed_files)
        tree = self._reporter.build_tree(report)
        body = self._comment_reporter.format_report(report, tree)

        logger.info("Posting coverage report to PR...")
        posted = self._comment_reporter.post_report(
            pr_info, body, update_existing=self._config.github.update_comment
        )

        artifact_dir: Path | None = None
        if self._config.artifact.name:
            logger.info("Writing coverage artifact: %s", self._config.artifact.name)
            artifact_dir = write_artifact(
                self._config.artifact.name,
                Path(self._config.artifact.output_dir),
                lcov_path,
                report,
            )

        check_coverage_thresholds(
            report,
            all_files_minimum=self._config.coverage.all_files_minimum,
            changed_files_minimum=self._config.coverage.changed_files_minimum,
        )

        logger.info("PR coverage report completed successfully")
        return ActionResult(
            report=report,
            tree=tree,
            body=body,
            comment_url=posted.get("comment_url", ""),
            artifact_dir=artifact_dir,
        )
