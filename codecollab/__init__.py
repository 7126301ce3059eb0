"""Collaborative room session server."""

__version__ = "0.1.0"
