"""
CLI Interface - Command-line tools for LocalExtract.

Provides commands for:
- Host capability check
- Schema preview
- Document extraction
"""

from .main import app, main

__all__ = ["app", "main"]
