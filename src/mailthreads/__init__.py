"""Email thread reconstruction and import."""

__version__ = "0.1.0"
