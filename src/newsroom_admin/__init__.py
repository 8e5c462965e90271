"""Newsroom admin console core and reference verification API."""

__version__ = "0.1.0"
