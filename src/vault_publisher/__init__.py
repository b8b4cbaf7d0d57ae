"""Publish selected vault notes to a GitHub repository."""

__version__ = "0.3.0"
