"""Command line interface for costwright."""

__version__ = "0.1.0"
