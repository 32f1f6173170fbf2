"""Exhaustive and sampled expected-duration analysis for project activities."""

__version__ = "0.1.0"
