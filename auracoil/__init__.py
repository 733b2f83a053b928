"""Reviewer-driven maintenance for agent documentation."""

__version__ = "0.2.0"
