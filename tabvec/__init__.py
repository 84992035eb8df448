"""Vector-column operations for an interactive tabular data explorer."""

__version__ = "0.1.0"
