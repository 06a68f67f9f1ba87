"""Templatizer: keep template files in sync across GitHub repositories."""

__version__ = "0.1.0"
