"""larrix: package browser extensions and preview them with live reload."""
__version__ = "0.3.0"
