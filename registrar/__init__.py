"""Registrar document request service."""

__version__ = "1.0.0"
