"""Tollgate - HTTP Basic authentication for aiohttp services."""

__version__ = "0.1.0"
