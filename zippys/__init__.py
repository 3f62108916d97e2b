"""Zip Slip archive generator and path traversal detector."""

__version__ = "1.0.0"
