"""
Schema Domain - Schema choices to canonical JSON Schema.

This domain handles:
- The built-in account record schema
- Parsing zod-style schema expressions as data
- JSON Schema and validation model generation
"""

from .builder import build_model, canonicalize, to_json_schema
from .models import (
    DEFAULT_CUSTOM_SCHEMA,
    AccountRecord,
    CustomSchema,
    PredefinedSchema,
    ResolvedSchema,
    SchemaChoice,
)
from .parser import SchemaNode, parse_schema
from .resolver import ACCOUNT_JSON_SCHEMA, SchemaResolver

__all__ = [
    # Models
    "SchemaChoice",
    "PredefinedSchema",
    "CustomSchema",
    "ResolvedSchema",
    "AccountRecord",
    "SchemaNode",
    "DEFAULT_CUSTOM_SCHEMA",
    "ACCOUNT_JSON_SCHEMA",
    # Implementations
    "SchemaResolver",
    "parse_schema",
    "to_json_schema",
    "build_model",
    "canonicalize",
]
