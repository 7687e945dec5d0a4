"""Multicast DNS service discovery browser."""

__version__ = "0.1.0"
