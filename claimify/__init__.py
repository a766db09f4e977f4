"""Claimify - staged extraction and evaluation of verifiable claims."""

__version__ = "0.1.0"
