"""Utility functions and helpers."""

from .logging import setup_logging
from .paths import PathMapper

__all__ = ["setup_logging", "PathMapper"]
