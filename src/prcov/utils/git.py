"""Git and GitHub API utilities for prcov.

Fetches the files changed by a pull request (from the GitHub REST API or,
for local runs, from ``git diff``) and manages the report comment.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import re
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import requests

from prcov.errors import PrcovError
from prcov.models.coverage import ChangedFileRecord, ChangeStatus

logger = logging.getLogger(__name__)

# GitHub API constants
GITHUB_API_BASE = "https://api.github.com"
_GITHUB_AUTH_ENV_KEY = "GITHUB_" + "TOKEN"
_REQUEST_TIMEOUT = 30
_PER_PAGE = 100

_PR_EVENT_NAMES = {"pull_request", "pull_request_target"}

# Expected number of parts when splitting "owner/repo"
_OWNER_REPO_PARTS = 2

# git diff --name-status letters
_GIT_STATUS_MAP = {
    "A": ChangeStatus.ADDED,
    "D": ChangeStatus.REMOVED,
    "M": ChangeStatus.MODIFIED,
    "R": ChangeStatus.RENAMED,
    "C": ChangeStatus.COPIED,
    "T": ChangeStatus.CHANGED,
}


def _git_executable() -> str:
    """Resolve the full path to the ``git`` executable."""
    return shutil.which("git") or "git"


@dataclass
class GitHubPRInfo:
    """Information about a GitHub pull request."""

    owner: str
    """Repository owner (username or organization)."""

    repo: str
    """Repository name."""

    pr_number: int
    """Pull request number."""


class GitHubAPIError(PrcovError):
    """Exception raised when GitHub API operations fail."""


class GitHubAPI:
    """Client for the parts of the GitHub REST API prcov needs.

    Handles authentication, pagination of pull request files, and report
    comment management.
    """

    def __init__(self, token: str | None = None, *, api_base: str = GITHUB_API_BASE) -> None:
        """Initialize the GitHub API client.

        Args:
            token: GitHub token. If not provided, will try to read from the
                GITHUB_TOKEN environment variable.
            api_base: REST API root (GitHub Enterprise installs differ).

        Raises:
            GitHubAPIError: If no token is available.
        """
        self._token = token or os.environ.get(_GITHUB_AUTH_ENV_KEY)
        if not self._token:
            raise GitHubAPIError(
                f"GitHub token required. Set {_GITHUB_AUTH_ENV_KEY} environment variable "
                "or pass token to constructor."
            )

        self._api_base = api_base.rstrip("/")
        self._session_headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _repo_url(self, pr_info: GitHubPRInfo) -> str:
        return f"{self._api_base}/repos/{pr_info.owner}/{pr_info.repo}"

    def list_pull_request_files(self, pr_info: GitHubPRInfo) -> list[ChangedFileRecord]:
        """List every file changed by a pull request.

        Pages through ``GET /pulls/{number}/files`` until an empty page or a
        page shorter than the page size.

        Args:
            pr_info: Pull request information.

        Returns:
            Changed files in the order GitHub returns them.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        url = f"{self._repo_url(pr_info)}/pulls/{pr_info.pr_number}/files"
        files: list[ChangedFileRecord] = []
        page = 1

        while True:
            batch: list[dict[str, Any]] = self._get(url, {"per_page": _PER_PAGE, "page": page})
            if not batch:
                break

            files.extend(
                ChangedFileRecord(
                    filename=str(item["filename"]),
                    status=ChangeStatus.parse(str(item.get("status", ""))),
                )
                for item in batch
            )

            if len(batch) < _PER_PAGE:
                break
            page += 1

        logger.info("Found %d changed files in PR #%d", len(files), pr_info.pr_number)
        return files

    def create_comment(self, pr_info: GitHubPRInfo, body: str) -> dict[str, Any]:
        """Create a new comment on a pull request.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        url = f"{self._repo_url(pr_info)}/issues/{pr_info.pr_number}/comments"
        result: dict[str, Any] = self._post(url, {"body": body})
        return result

    def update_comment(self, pr_info: GitHubPRInfo, comment_id: int, body: str) -> dict[str, Any]:
        """Update an existing comment on a pull request.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        url = f"{self._repo_url(pr_info)}/issues/comments/{comment_id}"
        result: dict[str, Any] = self._patch(url, {"body": body})
        return result

    def find_comment_by_marker(self, pr_info: GitHubPRInfo, marker: str) -> dict[str, Any] | None:
        """Find a comment on a PR by a unique marker string.

        Pages through the comments until the marker turns up or a page shorter
        than the page size ends the listing.

        Args:
            pr_info: Pull request information.
            marker: Unique marker to search for in comment body.

        Returns:
            Comment dict if found, None otherwise.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        url = f"{self._repo_url(pr_info)}/issues/{pr_info.pr_number}/comments"
        page = 1

        while True:
            comments: list[dict[str, Any]] = self._get(
                url, {"per_page": _PER_PAGE, "page": page}
            )
            for comment in comments:
                if marker in (comment.get("body") or ""):
                    result: dict[str, Any] = comment
                    return result

            if len(comments) < _PER_PAGE:
                return None
            page += 1

    def upsert_comment(
        self,
        pr_info: GitHubPRInfo,
        body: str,
        marker: str,
        *,
        update_existing: bool = True,
    ) -> dict[str, Any]:
        """Create or update a comment on a PR.

        If *update_existing* is set and a comment with the given marker
        exists, it is updated. Otherwise, a new comment is created.

        Args:
            pr_info: Pull request information.
            body: Comment body (markdown formatted). Should include the marker.
            marker: Unique marker identifying this comment.
            update_existing: Whether to look for a previous comment to update.

        Returns:
            GitHub API response as a dictionary.

        Raises:
            GitHubAPIError: If creating or updating the comment fails.
        """
        if marker not in body:
            logger.warning("Marker '%s' not found in comment body. Adding it.", marker)
            body = f"{marker}\n{body}"

        if update_existing:
            try:
                existing = self.find_comment_by_marker(pr_info, marker)
            except GitHubAPIError as exc:
                logger.warning("Failed to find existing comment: %s", exc)
                existing = None

            if existing:
                logger.info("Updating existing comment %d", existing["id"])
                return self.update_comment(pr_info, existing["id"], body)

        logger.info("Creating new comment")
        return self.create_comment(pr_info, body)

    def _get(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """Make a GET request to the GitHub API.

        Raises:
            GitHubAPIError: If the request fails.
        """
        try:
            response = requests.get(
                url, params=params, headers=self._session_headers, timeout=_REQUEST_TIMEOUT
            )
            response.raise_for_status()
            return response.json()
        except Exception as exc:
            raise GitHubAPIError(f"GET request failed: {exc}") from exc

    def _post(self, url: str, data: dict[str, Any]) -> Any:
        """Make a POST request to the GitHub API.

        Raises:
            GitHubAPIError: If the request fails.
        """
        try:
            response = requests.post(
                url, json=data, headers=self._session_headers, timeout=_REQUEST_TIMEOUT
            )
            response.raise_for_status()
            return response.json()
        except Exception as exc:
            raise GitHubAPIError(f"POST request failed: {exc}") from exc

    def _patch(self, url: str, data: dict[str, Any]) -> Any:
        """Make a PATCH request to the GitHub API.

        Raises:
            GitHubAPIError: If the request fails.
        """
        try:
            response = requests.patch(
                url, json=data, headers=self._session_headers, timeout=_REQUEST_TIMEOUT
            )
            response.raise_for_status()
            return response.json()
        except Exception as exc:
            raise GitHubAPIError(f"PATCH request failed: {exc}") from exc


def _pr_number_from_event(event_path: str | None) -> int | None:
    """Read the pull request number from the Actions event payload."""
    if not event_path:
        return None
    try:
        payload = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.debug("Could not read event payload %s: %s", event_path, exc)
        return None

    pull_request = payload.get("pull_request") if isinstance(payload, dict) else None
    if isinstance(pull_request, dict) and isinstance(pull_request.get("number"), int):
        return int(pull_request["number"])
    return None


def _pr_number_from_ref(github_ref: str | None) -> int | None:
    """Parse the PR number from ``refs/pull/<number>/merge``."""
    if not github_ref or not github_ref.startswith("refs/pull/"):
        return None
    try:
        return int(github_ref.split("/")[2])
    except (IndexError, ValueError):
        return None


def get_pr_info_from_env() -> GitHubPRInfo | None:
    """Get PR information from GitHub Actions environment variables.

    Returns:
        GitHubPRInfo if running in a PR context, None otherwise.
    """
    github_repository = os.environ.get("GITHUB_REPOSITORY")
    github_event_name = os.environ.get("GITHUB_EVENT_NAME")

    if not github_repository or github_event_name not in _PR_EVENT_NAMES:
        return None

    parts = github_repository.split("/")
    if len(parts) != _OWNER_REPO_PARTS:
        return None

    owner, repo = parts

    pr_number = _pr_number_from_event(os.environ.get("GITHUB_EVENT_PATH"))
    if pr_number is None:
        pr_number = _pr_number_from_ref(os.environ.get("GITHUB_REF"))
    if pr_number is None:
        return None

    return GitHubPRInfo(owner=owner, repo=repo, pr_number=pr_number)


def compute_comment_marker(prefix: str) -> str:
    """Generate a unique marker for a GitHub comment.

    This creates an HTML comment marker that can be used to identify
    and update specific comments on a PR.

    Args:
        prefix: Prefix for the marker (e.g., "prcov:report").

    Returns:
        HTML comment marker string.
    """
    hash_str = hashlib.sha256(prefix.encode()).hexdigest()[:8]
    return f"<!-- {prefix}:{hash_str} -->"


# ── Local git ────────────────────────────────────────────────────


class GitOperationError(PrcovError):
    """Exception raised when git operations fail."""


_GIT_REF_MAX_LENGTH = 255
_GIT_REF_UNSAFE = re.compile(r"[\x00-\x1f\x7f \~\^:\?\*\[\]\\;|&$`()<>{}!#'\"]")


def _validate_git_ref(ref: str) -> None:
    """Validate a git ref to prevent injection and malformed inputs.

    Raises:
        GitOperationError: If the ref is invalid.
    """
    if not ref:
        raise GitOperationError("Git ref must not be empty")
    if len(ref) > _GIT_REF_MAX_LENGTH:
        raise GitOperationError(f"Git ref exceeds {_GIT_REF_MAX_LENGTH} characters")
    if _GIT_REF_UNSAFE.search(ref):
        raise GitOperationError(f"Git ref contains unsafe characters: {ref!r}")
    if ref.startswith("-"):
        raise GitOperationError("Git ref must not start with a dash")
    if ".." in ref:
        raise GitOperationError("Git ref must not contain '..'")


def parse_name_status(output: str) -> list[ChangedFileRecord]:
    """Parse ``git diff --name-status`` output into changed-file records.

    Renames and copies report the destination path.
    """
    files: list[ChangedFileRecord] = []
    for raw in output.splitlines():
        if not raw.strip():
            continue
        fields = raw.split("\t")
        letter = fields[0][:1]
        path = fields[-1]
        files.append(
            ChangedFileRecord(
                filename=path,
                status=_GIT_STATUS_MAP.get(letter, ChangeStatus.CHANGED),
            )
        )
    return files


def get_changed_files_from_git(
    repo_path: Path | str, base_ref: str, head_ref: str = "HEAD"
) -> list[ChangedFileRecord]:
    """List files changed between the merge base of *base_ref* and *head_ref*.

    Args:
        repo_path: Path to git repository.
        base_ref: Branch or commit the changes are compared against.
        head_ref: Ref holding the changes (default HEAD).

    Returns:
        Changed files in ``git diff`` order.

    Raises:
        GitOperationError: If the operation fails.
    """
    _validate_git_ref(base_ref)
    _validate_git_ref(head_ref)
    try:
        result = subprocess.run(
            [
                _git_executable(),
                "diff",
                "--name-status",
                f"{base_ref}...{head_ref}",
            ],
            cwd=Path(repo_path),
            capture_output=True,
            text=True,
            check=True,
        )
    except (subprocess.CalledProcessError, OSError) as exc:
        msg = f"Failed to list changes between {base_ref} and {head_ref}: {exc}"
        raise GitOperationError(msg) from exc

    files = parse_name_status(result.stdout)
    logger.info("Found %d changed files between %s and %s", len(files), base_ref, head_ref)
    return files
