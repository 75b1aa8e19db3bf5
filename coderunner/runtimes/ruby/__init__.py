"""Ruby runtime: the system ``ruby`` interpreter driven by a guest process.

Provides RubyRunner. A missing interpreter is reported as a bootstrap failure
on first execution.
"""

from .runner import RubyRunner

__all__ = ["RubyRunner"]
