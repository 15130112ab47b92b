"""Shift and setup performance metrics for manufacturing operations."""

__version__ = "0.1.0"
