"""HTML runtime: in-process markup preview."""

from .runner import HtmlRunner

__all__ = ["HtmlRunner"]
