"""
LocalExtract - On-device document to structured JSON extraction.

Example:
    >>> from localextract.domains.extraction import ExtractionSession
    >>> from localextract.domains.schema import PredefinedSchema
    >>> async with ExtractionSession() as session:
    ...     if await session.start():
    ...         result = await session.extract_file(Path("statement.pdf"), PredefinedSchema())
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
