# src/__init__.py — v1
"""doctranslator: asynchronous document translation jobs, single and bulk."""

from doctranslator.version import __version__

__all__ = ["__version__"]
