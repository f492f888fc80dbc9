"""Wortschatz: dictionary favorites library (API service and client engine)."""

__version__ = "0.3.0"
