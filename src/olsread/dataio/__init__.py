"""Data input helpers for OLS capture files.

- :mod:`ols_loader` scans, validates and decodes ``.ols`` text streams.
"""

from .ols_loader import decode, decodes, load_ols

__all__ = ["decode", "decodes", "load_ols"]
