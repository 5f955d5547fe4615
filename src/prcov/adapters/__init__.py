"""Adapters turning coverage tool output into prcov's coverage dataset."""

from prcov.adapters.lcov import LcovParseError, LcovParser, parse_lcov_file

__all__ = ["LcovParseError", "LcovParser", "parse_lcov_file"]
