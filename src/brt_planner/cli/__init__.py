"""Command line interface for BRT journey planning."""

from .main import cli

__all__ = ["cli"]
