"""Order lifecycle and courier assignment service."""

__version__ = "0.1.0"
