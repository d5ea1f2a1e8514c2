"""Selfie capture and Ghana Card verification backend."""

__version__ = "0.1.0"
