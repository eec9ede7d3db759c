"""Command-line interface for the finance assistant."""

from .app import app

__all__ = ["app"]
