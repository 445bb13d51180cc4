"""Security service: derived technical-indicator metrics for securities."""

__version__ = "0.1.0"
