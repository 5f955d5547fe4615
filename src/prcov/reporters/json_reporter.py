"""JSON reporter: machine-readable coverage reports and report artifacts.

The JSON document carries the same structure consumers of the comment see
(both rollups and every matched file) so that later workflow steps, such
as an artifact upload, can pick it up.
"""

from __future__ import annotations

import json
import logging
import shutil
from dataclasses import asdict
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from prcov import __version__

if TYPE_CHECKING:
    from prcov.models.coverage import CoverageReport

logger = logging.getLogger(__name__)

REPORT_FILENAME = "coverage-report.json"


class JSONReporter:
    """Serialize a ``CoverageReport`` to JSON."""

    def generate(self, output_path: Path, report: CoverageReport) -> Path:
        """Write a JSON report file.

        Args:
            output_path: Path to write the JSON file.
            report: Report to serialize.

        Returns:
            The path to the generated JSON file.
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.generate_string(report), encoding="utf-8")
        logger.info("JSON report written to %s", output_path)
        return output_path

    def generate_string(self, report: CoverageReport) -> str:
        """Return the JSON report as a string."""
        return json.dumps(build_report_payload(report), indent=2, ensure_ascii=False)


def build_report_payload(report: CoverageReport) -> dict[str, Any]:
    """Build the JSON-compatible report structure."""
    return {
        "tool": "prcov",
        "version": __version__,
        "timestamp": datetime.now(tz=UTC).isoformat(),
        "all_files": asdict(report.all_files),
        "changed_files": asdict(report.changed_files),
        "file_details": [asdict(detail) for detail in report.file_details],
        "changed_files_count": report.changed_files_count,
        "unmatched_files": list(report.unmatched_files),
    }


def write_artifact(
    name: str,
    output_dir: Path,
    lcov_file: Path,
    report: CoverageReport,
) -> Path | None:
    """Stage the LCOV file and JSON report under ``output_dir/name``.

    Failures are logged and swallowed: a missing artifact never fails a run.

    Returns:
        The artifact directory, or None if staging failed.
    """
    artifact_dir = output_dir / name
    try:
        artifact_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(lcov_file, artifact_dir / lcov_file.name)
        JSONReporter().generate(artifact_dir / REPORT_FILENAME, report)
    except OSError as exc:
        logger.warning("Failed to write coverage artifact %s: %s", name, exc)
        return None

    size = sum(path.stat().st_size for path in artifact_dir.iterdir() if path.is_file())
    logger.info("Wrote coverage artifact %s to %s (%d bytes)", name, artifact_dir, size)
    return artifact_dir
