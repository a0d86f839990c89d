"""Vulnerability and misconfiguration scanning core."""

__version__ = "0.1.0"