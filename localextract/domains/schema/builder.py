"""
Schema Builder - Turns parsed schema nodes into JSON Schema and Pydantic models.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, create_model

from .parser import SchemaNode

__all__ = ["build_model", "canonicalize", "to_json_schema"]

_FIELD_CONSTRAINTS = {
    "minLength": "min_length",
    "maxLength": "max_length",
    "minItems": "min_length",
    "maxItems": "max_length",
    "minimum": "ge",
    "maximum": "le",
    "exclusiveMinimum": "gt",
}
_PRIMITIVES: dict[str, type] = {
    "string": str,
    "number": float,
    "integer": int,
    "boolean": bool,
}


def to_json_schema(node: SchemaNode) -> dict[str, Any]:
    """
    Render a node as canonical JSON Schema.

    Objects always carry ``properties``, ``required`` (every field not marked
    optional, in declaration order) and ``additionalProperties: false``.
    """
    schema: dict[str, Any]
    if node.kind == "object":
        schema = {
            "type": "object",
            "properties": {key: to_json_schema(child) for key, child in node.fields.items()},
            "required": [key for key, child in node.fields.items() if not child.optional],
            "additionalProperties": False,
        }
    elif node.kind == "array":
        assert node.items is not None
        schema = {"type": "array", "items": to_json_schema(node.items)}
    elif node.kind == "enum":
        schema = {"type": "string", "enum": list(node.values)}
    elif node.kind == "literal":
        value = node.values[0]
        schema = {"type": _json_type(value), "const": value}
    else:
        schema = {"type": node.kind}

    schema.update(node.constraints)
    if node.description:
        schema["description"] = node.description
    if node.nullable:
        schema = {"anyOf": [schema, {"type": "null"}]}
    return schema


def build_model(node: SchemaNode, name: str = "CustomRecord") -> type[BaseModel]:
    """
    Build a Pydantic model that validates output against an object node.

    Field names are attached as aliases so keys that are not valid Python
    identifiers (``"first name"``, ``"_id"``) still validate.
    """
    model_fields: dict[str, tuple[Any, Any]] = {}
    for index, (key, child) in enumerate(node.fields.items()):
        annotation = _annotation(child, f"{name}_{index}")
        default = None if child.optional else ...
        model_fields[f"field_{index}"] = (annotation, Field(default=default, alias=key))

    return create_model(  # type: ignore[call-overload]
        name,
        __config__=ConfigDict(extra="forbid", strict=True),
        **model_fields,
    )


def canonicalize(schema: dict[str, Any]) -> dict[str, Any]:
    """
    Normalize a Pydantic-generated JSON Schema to the canonical layout.

    Drops generated ``title`` annotations and orders object keywords as
    ``type, properties, required, additionalProperties``.
    """
    out = {key: value for key, value in schema.items() if key != "title"}

    if "properties" in out:
        out["properties"] = {
            key: canonicalize(value) for key, value in out["properties"].items()
        }
    if isinstance(out.get("items"), dict):
        out["items"] = canonicalize(out["items"])
    if "anyOf" in out:
        out["anyOf"] = [canonicalize(option) for option in out["anyOf"]]

    if out.get("type") == "object":
        ordered: dict[str, Any] = {
            "type": "object",
            "properties": out.pop("properties", {}),
            "required": out.pop("required", []),
            "additionalProperties": out.pop("additionalProperties", False),
        }
        out.pop("type")
        ordered.update(out)
        return ordered
    return out


def _annotation(node: SchemaNode, name: str) -> Any:
    base: Any
    if node.kind == "object":
        base = build_model(node, name)
    elif node.kind == "array":
        assert node.items is not None
        base = list[_annotation(node.items, f"{name}_item")]  # type: ignore[misc]
    elif node.kind in ("enum", "literal"):
        base = Literal[tuple(node.values)]  # type: ignore[valid-type]
    else:
        base = _PRIMITIVES[node.kind]

    constraints = {
        _FIELD_CONSTRAINTS[key]: value
        for key, value in node.constraints.items()
        if key in _FIELD_CONSTRAINTS
    }
    if constraints:
        base = Annotated[base, Field(**constraints)]
    if node.nullable:
        base = base | None
    return base


def _json_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    return "string"
