"""Command-line interface module for tolerant markup processing.

This module provides the tolerant-markup tool for reformatting markup files,
checking how they parse and printing their node tree.
"""

from .main import main

__all__ = ["main"]
