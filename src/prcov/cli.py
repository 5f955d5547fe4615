"""prcov CLI: top-level command group."""

from __future__ import annotations

import copy
import json
import logging
import os
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console

from prcov import __version__
from prcov.action import PrCoverageAction
from prcov.adapters.lcov import LcovParser
from prcov.config import CONFIG_FILENAME, PrcovConfig, load_config, validate_config
from prcov.core.report import CoverageReporter
from prcov.core.thresholds import CoverageThresholdError, check_coverage_thresholds
from prcov.errors import PrcovError
from prcov.models.coverage import ChangedFileRecord
from prcov.reporters.github_comment import format_report_body
from prcov.reporters.json_reporter import JSONReporter
from prcov.reporters.terminal import reporter
from prcov.utils.git import GitHubAPI, get_changed_files_from_git, get_pr_info_from_env

logger = logging.getLogger(__name__)
console = Console()

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
_SENSITIVE_KEYS = {"token"}
_MIN_MASKED_VALUE_LENGTH = 8


def _configure_logging(*, verbose: bool) -> None:
    """Route log records to stderr: DEBUG with --verbose, INFO under Actions."""
    if verbose:
        level = logging.DEBUG
    elif os.environ.get("GITHUB_ACTIONS") == "true":
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=_LOG_FORMAT, force=True)


def _config_to_dict(config: PrcovConfig) -> dict[str, Any]:
    """Convert PrcovConfig to dictionary for display."""
    result = asdict(config)
    result.pop("raw", None)
    return result


def _mask_sensitive_values(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Recursively mask sensitive values in configuration dict."""
    result = copy.deepcopy(config_dict)

    def _mask_dict(data: dict[str, Any]) -> None:
        for key, value in data.items():
            if key in _SENSITIVE_KEYS and isinstance(value, str) and value:
                if len(value) > _MIN_MASKED_VALUE_LENGTH:
                    data[key] = f"{value[:4]}...{value[-4:]}"
                else:
                    data[key] = "***"
            elif isinstance(value, dict):
                _mask_dict(value)

    _mask_dict(result)
    return result


def _load_or_abort(path: str) -> PrcovConfig:
    try:
        return load_config(path)
    except (OSError, yaml.YAMLError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e


def _collect_changed_files(
    changed: tuple[str, ...], base: str | None, repo: str
) -> list[ChangedFileRecord]:
    """Merge --changed-file paths and `git diff` results, first occurrence wins."""
    files = [ChangedFileRecord(filename=name) for name in changed]
    if base:
        files.extend(get_changed_files_from_git(repo, base))

    unique: dict[str, ChangedFileRecord] = {}
    for record in files:
        unique.setdefault(record.filename, record)
    return list(unique.values())


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="prcov")
@click.pass_context
def cli(ctx: click.Context, *, verbose: bool) -> None:
    """prcov: nested per-directory coverage reports for pull requests."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _configure_logging(verbose=verbose)


@cli.command()
@click.argument("lcov_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--changed-file",
    "changed",
    multiple=True,
    help="Path of a changed file (repeatable).",
)
@click.option(
    "--base",
    default=None,
    help="Compare HEAD against this ref with `git diff` to find changed files.",
)
@click.option(
    "--repo",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Git repository used with --base.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["terminal", "markdown", "json"]),
    default="terminal",
    show_default=True,
    help="Output format.",
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the report to this file instead of stdout.",
)
@click.option(
    "--all-files-minimum",
    type=float,
    default=0.0,
    show_default=True,
    help="Fail when overall line coverage is below this percentage.",
)
@click.option(
    "--changed-files-minimum",
    type=float,
    default=0.0,
    show_default=True,
    help="Fail when changed-file line coverage is below this percentage.",
)
def report(
    lcov_file: Path,
    changed: tuple[str, ...],
    base: str | None,
    repo: str,
    output_format: str,
    output: Path | None,
    all_files_minimum: float,
    changed_files_minimum: float,
) -> None:
    """Build a coverage report locally.

    Changed files come from --changed-file options and/or `git diff` against
    --base.

    Example:
      prcov report coverage/lcov.info --base origin/main
      prcov report lcov.info --changed-file src/a.ts --format markdown
    """
    if not changed and not base:
        raise click.UsageError("Provide --changed-file or --base to select changed files.")

    try:
        coverage_data = LcovParser().parse_file(lcov_file)
        changed_files = _collect_changed_files(changed, base, repo)
    except PrcovError as e:
        reporter.print_error(str(e))
        raise click.Abort from e

    coverage_reporter = CoverageReporter()
    result = coverage_reporter.generate_report(coverage_data, changed_files)
    tree = coverage_reporter.build_tree(result)

    if output_format == "terminal":
        reporter.print_report(result, tree)
    else:
        if output_format == "json":
            text = JSONReporter().generate_string(result)
        else:
            text = format_report_body(result, tree)
        if output is not None:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(text, encoding="utf-8")
            reporter.print_success(f"Report written to {output}")
        else:
            click.echo(text)

    try:
        check_coverage_thresholds(
            result,
            all_files_minimum=all_files_minimum,
            changed_files_minimum=changed_files_minimum,
        )
    except CoverageThresholdError as e:
        reporter.print_error(str(e))
        raise click.Abort from e


@cli.command()
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help=f"Directory containing {CONFIG_FILENAME}.",
)
@click.option("--lcov-file", default=None, help="Override coverage.lcov_file.")
@click.option(
    "--update-comment/--new-comment",
    default=None,
    help="Update the previous report comment or always add a new one.",
)
def action(path: str, lcov_file: str | None, update_comment: bool | None) -> None:
    """Post a coverage report to the current pull request (GitHub Actions)."""
    config = _load_or_abort(path)
    if lcov_file:
        config = replace(config, coverage=replace(config.coverage, lcov_file=lcov_file))
    if update_comment is not None:
        config = replace(config, github=replace(config.github, update_comment=update_comment))

    errors = validate_config(config)
    if errors:
        for error in errors:
            reporter.print_error(error)
        raise click.Abort

    try:
        api = GitHubAPI(token=config.github.token or None, api_base=config.github.api_url)
        result = PrCoverageAction(config, get_pr_info_from_env(), api).execute()
    except PrcovError as e:
        reporter.print_error(str(e))
        raise click.Abort from e

    reporter.print_success(f"Coverage report posted: {result.comment_url}")


@cli.group("config")
def config_group() -> None:
    """Inspect `.prcov.yml` configuration."""


@config_group.command("show")
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
@click.option("--json-output", "as_json", is_flag=True, help="Output as JSON instead of YAML.")
@click.option("--no-mask", is_flag=True, help="Show the token unmasked.")
def config_show(path: str, *, as_json: bool, no_mask: bool) -> None:
    """Display the resolved configuration with the token masked."""
    config_dict = _config_to_dict(_load_or_abort(path))
    if not no_mask:
        config_dict = _mask_sensitive_values(config_dict)

    if as_json:
        click.echo(json.dumps(config_dict, indent=2))
    else:
        click.echo(yaml.safe_dump(config_dict, sort_keys=False, default_flow_style=False))


@config_group.command("validate")
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
def config_validate(path: str) -> None:
    """Validate the resolved configuration."""
    errors = validate_config(_load_or_abort(path))

    if not errors:
        reporter.print_success("Configuration is valid!")
        return

    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    console.print()
    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{error}[/red]")
    console.print()
    raise click.Abort


def main() -> None:
    """Console-script entry point."""
    cli(obj={})
