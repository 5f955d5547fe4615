"""Resolve changed-file paths to keys of a coverage dataset.

Coverage tools and code hosts rarely agree on path conventions: LCOV files
often carry ``./``-prefixed, backslash-separated or absolute paths while the
pull request lists repository-relative ones.  ``PathMatcher`` bridges the two
with three strategies, tried in order:

1. exact string equality;
2. equality after normalization (leading ``./`` removed, ``\\`` turned into ``/``);
3. suffix containment in either direction.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from prcov.models.coverage import ChangedFileRecord

logger = logging.getLogger(__name__)

_CURRENT_DIR_PREFIX = "./"


def normalize_path(path: str) -> str:
    """Canonicalize separators and strip leading ``./`` segments."""
    normalized = path.replace("\\", "/")
    while normalized.startswith(_CURRENT_DIR_PREFIX):
        normalized = normalized[len(_CURRENT_DIR_PREFIX) :]
    return normalized


class PathMatcher:
    """Match changed-file paths against a fixed set of coverage keys.

    The normalized lookup is built once per instance, so a matcher must be
    created per run and never shared between runs.
    """

    def __init__(self, coverage_keys: Iterable[str]) -> None:
        self._keys: list[str] = list(coverage_keys)
        self._exact: set[str] = set(self._keys)
        self._normalized: dict[str, str] = {}
        self._normalized_keys: list[tuple[str, str]] = []
        for key in self._keys:
            normalized = normalize_path(key)
            self._normalized.setdefault(normalized, key)
            if normalized:
                self._normalized_keys.append((normalized, key))

    def match(self, changed_path: str) -> str | None:
        """Return the coverage key for *changed_path*, or None if nothing matches."""
        if changed_path in self._exact:
            return changed_path

        normalized = normalize_path(changed_path)
        key = self._normalized.get(normalized)
        if key is not None:
            logger.debug("Matched %s to %s after normalization", changed_path, key)
            return key

        if not normalized:
            return None

        for normalized_key, key in self._normalized_keys:
            if normalized_key.endswith(normalized) or normalized.endswith(normalized_key):
                logger.debug("Matched %s to %s by path suffix", changed_path, key)
                return key

        return None

    def match_all(
        self, changed_files: Iterable[ChangedFileRecord]
    ) -> list[tuple[ChangedFileRecord, str]]:
        """Resolve every changed file, keeping input order and dropping misses."""
        matched: list[tuple[ChangedFileRecord, str]] = []
        for changed in changed_files:
            key = self.match(changed.filename)
            if key is None:
                logger.debug("No coverage found for changed file: %s", changed.filename)
                continue
            matched.append((changed, key))
        return matched
