"""
PDF Adapter - Document text extraction.
"""

from .reader import PdfTextReader, join_pages

__all__ = ["PdfTextReader", "join_pages"]
