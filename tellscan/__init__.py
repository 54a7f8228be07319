"""Deterministic style diagnostics for prose, code and commit messages."""

__version__ = "0.1.0"
