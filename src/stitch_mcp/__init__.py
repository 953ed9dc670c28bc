"""MCP bridge for the Google Stitch design API."""

__version__ = "1.0.0"
