"""Employee survey analytics over configurable survey types."""

__version__ = "0.1.0"
