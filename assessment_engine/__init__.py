"""Claim validation and metrics normalization for technology assessments."""

__version__ = "0.1.0"
