"""Site audit admin API and pipeline helpers."""

__version__ = "0.1.0"
