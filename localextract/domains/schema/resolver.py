"""
Schema Resolver - SchemaChoice to canonical JSON Schema.

Pure and deterministic: no I/O, no caching across choices, and custom
sources are parsed as data by ``parse_schema``.
"""

from __future__ import annotations

import copy
import logging

from pydantic_core import SchemaError

from localextract.config import InvalidSchemaError

from .builder import build_model, canonicalize, to_json_schema
from .models import AccountRecord, CustomSchema, PredefinedSchema, ResolvedSchema, SchemaChoice
from .parser import parse_schema

logger = logging.getLogger(__name__)

__all__ = ["ACCOUNT_JSON_SCHEMA", "SchemaResolver"]

ACCOUNT_JSON_SCHEMA = canonicalize(AccountRecord.model_json_schema())


class SchemaResolver:
    """
    Resolves schema choices.

    Example:
        >>> resolver = SchemaResolver()
        >>> resolved = resolver.resolve(CustomSchema(source_text="z.object({ name: z.string() })"))
        >>> resolved.json_schema["properties"]
        {'name': {'type': 'string'}}
    """

    def resolve(self, choice: SchemaChoice) -> ResolvedSchema:
        """
        Produce the canonical schema for a choice.

        Args:
            choice: Predefined or custom schema choice

        Returns:
            Resolved schema with JSON Schema and validation model

        Raises:
            InvalidSchemaError: Custom source is not a valid expression
        """
        if isinstance(choice, PredefinedSchema):
            return ResolvedSchema(
                json_schema=copy.deepcopy(ACCOUNT_JSON_SCHEMA),
                model=AccountRecord,
                kind="predefined",
            )

        if isinstance(choice, CustomSchema):
            node = parse_schema(choice.source_text)
            try:
                model = build_model(node)
            except (SchemaError, TypeError, ValueError) as e:
                raise InvalidSchemaError(
                    f"Schema constraints cannot be enforced: {e}",
                    {"cause": type(e).__name__},
                ) from e
            resolved = ResolvedSchema(
                json_schema=to_json_schema(node),
                model=model,
                kind="custom",
            )
            logger.debug("Resolved custom schema with fields: %s", resolved.property_names)
            return resolved

        raise TypeError(f"Unsupported schema choice: {choice!r}")
