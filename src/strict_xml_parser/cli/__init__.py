"""Command-line interface for the strict XML parser."""

from .main import main

__all__ = ["main"]
