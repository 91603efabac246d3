"""Marketplace administrative action pipeline."""

__version__ = "0.1.0"
