"""Configuration parsing from ``.prcov.yml`` and GitHub Actions inputs.

Precedence, lowest to highest: built-in defaults, ``.prcov.yml``,
environment variables (Actions ``INPUT_*`` variables included), and
finally explicit overrides passed by the CLI.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".prcov.yml"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")
_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}
_MAX_PERCENTAGE = 100.0

# GitHub Actions exposes action inputs as INPUT_<NAME> with the name upper-cased.
_INPUT_LCOV_FILE = "INPUT_LCOV-FILE"
_INPUT_GITHUB_TOKEN = "INPUT_GITHUB-TOKEN"  # noqa: S105
_INPUT_WORKING_DIRECTORY = "INPUT_WORKING-DIRECTORY"
_INPUT_ALL_FILES_MINIMUM = "INPUT_ALL-FILES-MINIMUM-COVERAGE"
_INPUT_CHANGED_FILES_MINIMUM = "INPUT_CHANGED-FILES-MINIMUM-COVERAGE"
_INPUT_ARTIFACT_NAME = "INPUT_ARTIFACT-NAME"
_INPUT_UPDATE_COMMENT = "INPUT_UPDATE-COMMENT"
_GITHUB_AUTH_ENV_KEY = "GITHUB_" + "TOKEN"


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


def _parse_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUTHY:
        return True
    if text in _FALSY:
        return False
    return default


def _parse_float(value: Any, default: float) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("Invalid number %r in configuration; using %s", value, default)
        return default


def _env(name: str) -> str | None:
    """Return a non-empty environment variable, or None."""
    value = os.environ.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    section = raw.get(name, {})
    return section if isinstance(section, dict) else {}


@dataclass
class CoverageConfig:
    """Coverage input and threshold configuration."""

    lcov_file: str = "coverage/lcov.info"
    """Path to the LCOV tracefile, relative to the working directory."""

    all_files_minimum: float = 0.0
    """Minimum line coverage across all files (0 disables the check)."""

    changed_files_minimum: float = 0.0
    """Minimum line coverage across changed files (0 disables the check)."""


@dataclass
class GitHubConfig:
    """GitHub access and comment configuration."""

    token: str = ""
    """Token used for the REST API (supports ${ENV_VAR} expansion)."""

    update_comment: bool = True
    """Update the previous report comment instead of adding a new one."""

    api_url: str = "https://api.github.com"
    """REST API root (override for GitHub Enterprise)."""


@dataclass
class ArtifactConfig:
    """Report artifact configuration."""

    name: str = ""
    """Artifact name; empty disables artifact staging."""

    output_dir: str = ".prcov/artifacts"
    """Directory under which artifacts are staged."""


@dataclass
class PrcovConfig:
    """Complete prcov configuration."""

    coverage: CoverageConfig = field(default_factory=CoverageConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    artifact: ArtifactConfig = field(default_factory=ArtifactConfig)

    working_directory: str = ""
    """Directory to change into before resolving paths (empty = current)."""

    raw: dict[str, Any] = field(default_factory=dict)
    """Raw parsed YAML for extension/debugging."""


def _parse_coverage_config(raw: dict[str, Any]) -> CoverageConfig:
    """Parse the coverage section, overlaid by Actions inputs."""
    coverage_raw = _section(raw, "coverage")
    defaults = CoverageConfig()

    return CoverageConfig(
        lcov_file=_env(_INPUT_LCOV_FILE)
        or str(coverage_raw.get("lcov_file", defaults.lcov_file)),
        all_files_minimum=_parse_float(
            _env(_INPUT_ALL_FILES_MINIMUM) or coverage_raw.get("all_files_minimum"),
            defaults.all_files_minimum,
        ),
        changed_files_minimum=_parse_float(
            _env(_INPUT_CHANGED_FILES_MINIMUM) or coverage_raw.get("changed_files_minimum"),
            defaults.changed_files_minimum,
        ),
    )


def _parse_github_config(raw: dict[str, Any]) -> GitHubConfig:
    """Parse the github section, overlaid by Actions inputs."""
    github_raw = _section(raw, "github")
    defaults = GitHubConfig()

    token = (
        _env(_INPUT_GITHUB_TOKEN)
        or str(github_raw.get("token", "") or "")
        or os.environ.get(_GITHUB_AUTH_ENV_KEY, "")
    )
    update_raw = _env(_INPUT_UPDATE_COMMENT)
    if update_raw is None:
        update_raw = github_raw.get("update_comment", defaults.update_comment)

    return GitHubConfig(
        token=token,
        update_comment=_parse_bool(update_raw, defaults.update_comment),
        api_url=str(github_raw.get("api_url", os.environ.get("GITHUB_API_URL", defaults.api_url))),
    )


def _parse_artifact_config(raw: dict[str, Any]) -> ArtifactConfig:
    """Parse the artifact section, overlaid by Actions inputs."""
    artifact_raw = _section(raw, "artifact")
    defaults = ArtifactConfig()

    return ArtifactConfig(
        name=_env(_INPUT_ARTIFACT_NAME) or str(artifact_raw.get("name", defaults.name) or ""),
        output_dir=str(artifact_raw.get("output_dir", defaults.output_dir)),
    )


def load_config(root: str | Path) -> PrcovConfig:
    """Load and parse the complete configuration.

    Falls back to defaults and environment variables when ``.prcov.yml``
    is missing or incomplete.
    """
    root_path = Path(root).resolve()
    config_file = root_path / CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_file.is_file():
        parsed = yaml.safe_load(config_file.read_text(encoding="utf-8"))
        if isinstance(parsed, dict):
            raw = _resolve_dict(parsed)
        else:
            logger.warning("Ignoring %s: expected a mapping at the top level", config_file)

    working_directory = _env(_INPUT_WORKING_DIRECTORY) or str(
        raw.get("working_directory", "") or ""
    )

    return PrcovConfig(
        coverage=_parse_coverage_config(raw),
        github=_parse_github_config(raw),
        artifact=_parse_artifact_config(raw),
        working_directory=working_directory,
        raw=raw,
    )


def _validate_coverage_config(coverage: CoverageConfig) -> list[str]:
    """Validate coverage input and threshold settings."""
    errors: list[str] = []

    if not coverage.lcov_file:
        errors.append("coverage.lcov_file is required")

    if not 0.0 <= coverage.all_files_minimum <= _MAX_PERCENTAGE:
        errors.append(
            f"coverage.all_files_minimum must be between 0 and 100 "
            f"(got: {coverage.all_files_minimum})"
        )

    if not 0.0 <= coverage.changed_files_minimum <= _MAX_PERCENTAGE:
        errors.append(
            f"coverage.changed_files_minimum must be between 0 and 100 "
            f"(got: {coverage.changed_files_minimum})"
        )

    return errors


def _validate_artifact_config(artifact: ArtifactConfig) -> list[str]:
    """Validate artifact settings."""
    errors: list[str] = []

    if artifact.name and ("/" in artifact.name or "\\" in artifact.name):
        errors.append(
            f"artifact.name must not contain path separators (got: {artifact.name!r})"
        )

    if artifact.name and not artifact.output_dir:
        errors.append("artifact.output_dir is required when artifact.name is set")

    return errors


def validate_config(config: PrcovConfig) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid.
    """
    errors: list[str] = []
    errors.extend(_validate_coverage_config(config.coverage))
    errors.extend(_validate_artifact_config(config.artifact))
    return errors
