"""JSON runtime: in-process validation and formatting."""

from .runner import JsonRunner

__all__ = ["JsonRunner"]
