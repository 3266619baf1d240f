"""Compare two sets of Go benchmark results."""

__version__ = "0.1.0"
