"""Utility helpers for prcov."""
