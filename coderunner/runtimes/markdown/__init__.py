"""Markdown runtime: in-process rendering with the ``markdown`` package."""

from .runner import MarkdownRunner

__all__ = ["MarkdownRunner"]
