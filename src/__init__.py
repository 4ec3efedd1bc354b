# src/__init__.py — v1
"""hwenrich — device knowledge aggregation and caching engine."""

from hwenrich.version import __version__

__all__ = ["__version__"]
