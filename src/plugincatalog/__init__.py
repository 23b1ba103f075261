"""Cached remote plugin catalog with local install reconciliation."""

__version__ = "0.1.0"
