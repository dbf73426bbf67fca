"""Clinic wellness reporting dashboard API."""

__version__ = "0.1.0"
