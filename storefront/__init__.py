"""Storefront catalog backend for a digital-goods shop."""

__version__ = "0.1.0"
