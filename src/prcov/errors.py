"""Exception hierarchy shared by prcov collaborators."""

from __future__ import annotations


class PrcovError(Exception):
    """Base class for errors that abort a prcov run."""


class InvalidCoverageError(ValueError):
    """Raised when caller-supplied coverage counts violate ``0 <= hit <= found``."""
