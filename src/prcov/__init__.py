"""prcov: nested, per-directory coverage reports for pull requests."""

__version__ = "0.1.0"
