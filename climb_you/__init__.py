"""Climb You - adaptive quest generation and learning analytics core."""

__version__ = "0.1.0"
