"""
Schema Parser - Closed-grammar parser for zod-style schema expressions.

The source text is tokenized and parsed into ``SchemaNode`` data. Nothing is
ever executed: any construct outside the grammar below is rejected with an
``InvalidSchemaError`` pointing at the offending token.

Grammar:
    schema    := type ';'? EOF                      (root must be an object)
    type      := 'z' '.' COMBINATOR '(' args ')' modifier*
    modifier  := '.' MODIFIER '(' args ')'
    object    := 'z.object' '(' '{' [field (',' field)* ','?] '}' ')'
    field     := (NAME | STRING) ':' type
    enum      := 'z.enum' '(' '[' STRING (',' STRING)* ','? ']' ')'
    literal   := 'z.literal' '(' STRING | NUMBER | 'true' | 'false' ')'
    array     := 'z.array' '(' type ')'

Nesting is capped at MAX_DEPTH types; string and array bounds must be
non-negative integers.

Example:
    >>> node = parse_schema('z.object({ name: z.string(), age: z.number().int() })')
    >>> list(node.fields)
    ['name', 'age']
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Literal

from localextract.config import InvalidSchemaError

__all__ = ["SchemaNode", "Token", "parse_schema", "tokenize"]

NodeKind = Literal["object", "string", "number", "integer", "boolean", "array", "enum", "literal"]

_TOKEN_SPEC = [
    ("COMMENT", r"//[^\n]*|/\*.*?\*/"),
    ("WS", r"\s+"),
    ("NUMBER", r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?"),
    ("STRING", r"\"(?:[^\"\\\n]|\\.)*\"|'(?:[^'\\\n]|\\.)*'"),
    ("NAME", r"[A-Za-z_$][A-Za-z0-9_$]*"),
    ("PUNCT", r"[.(){}\[\]:,;]"),
]
_TOKEN_RE = re.compile("|".join(f"(?P<{name}>{rx})" for name, rx in _TOKEN_SPEC), re.DOTALL)
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", '"': '"', "'": "'"}

_SCALARS: dict[str, NodeKind] = {
    "string": "string",
    "number": "number",
    "integer": "integer",
    "int": "integer",
    "boolean": "boolean",
}
_STRING_FORMATS = {
    "email": "email",
    "url": "uri",
    "uuid": "uuid",
    "datetime": "date-time",
    "date": "date",
}

MAX_DEPTH = 32
_COUNTED_KINDS = ("string", "array")
_BOUND_KEYWORDS: dict[str, dict[str, str]] = {
    "string": {"min": "minLength", "max": "maxLength"},
    "number": {"min": "minimum", "max": "maximum"},
    "integer": {"min": "minimum", "max": "maximum"},
    "array": {"min": "minItems", "max": "maxItems"},
}


@dataclass
class SchemaNode:
    """Parsed schema expression."""

    kind: NodeKind
    fields: dict[str, SchemaNode] = field(default_factory=dict)
    items: SchemaNode | None = None
    values: list[Any] = field(default_factory=list)
    optional: bool = False
    nullable: bool = False
    description: str | None = None
    constraints: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    line: int
    column: int

    @property
    def position(self) -> str:
        return f"line {self.line}, column {self.column}"


def tokenize(source: str) -> list[Token]:
    """
    Split source text into tokens, dropping whitespace and comments.

    Raises:
        InvalidSchemaError: Character not part of the grammar
    """
    tokens: list[Token] = []
    pos = 0
    line = 1
    line_start = 0

    while pos < len(source):
        match = _TOKEN_RE.match(source, pos)
        if match is None:
            column = pos - line_start + 1
            raise InvalidSchemaError(
                f"Unexpected character {source[pos]!r} at line {line}, column {column}",
                {"line": line, "column": column},
            )
        kind = match.lastgroup or ""
        text = match.group()
        if kind not in ("WS", "COMMENT"):
            tokens.append(Token(kind, text, line, pos - line_start + 1))

        newlines = text.count("\n")
        if newlines:
            line += newlines
            line_start = pos + text.rindex("\n") + 1
        pos = match.end()

    tokens.append(Token("EOF", "", line, pos - line_start + 1))
    return tokens


def parse_schema(source: str) -> SchemaNode:
    """
    Parse a schema expression into a ``SchemaNode`` tree.

    Args:
        source: Schema source text, e.g. ``z.object({ name: z.string() })``

    Returns:
        Root object node

    Raises:
        InvalidSchemaError: Malformed expression, unknown combinator or
            modifier, or a root that is not an object
    """
    if not source.strip():
        raise InvalidSchemaError("Schema source is empty")

    parser = _Parser(tokenize(source))
    root = parser.parse_type()
    parser.accept("PUNCT", ";")
    parser.expect("EOF")

    if root.kind != "object":
        raise InvalidSchemaError(f"Schema root must be z.object(...), got z.{root.kind}(...)")
    return root


class _Parser:
    """Recursive-descent parser over a token list."""

    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._index = 0
        self._depth = 0

    # --- token helpers ---

    def peek(self) -> Token:
        return self._tokens[self._index]

    def advance(self) -> Token:
        token = self._tokens[self._index]
        if token.kind != "EOF":
            self._index += 1
        return token

    def accept(self, kind: str, text: str | None = None) -> Token | None:
        token = self.peek()
        if token.kind == kind and (text is None or token.text == text):
            return self.advance()
        return None

    def expect(self, kind: str, text: str | None = None) -> Token:
        token = self.accept(kind, text)
        if token is None:
            wanted = repr(text) if text else kind.lower()
            raise self.error(f"Expected {wanted}", self.peek())
        return token

    def error(self, message: str, token: Token) -> InvalidSchemaError:
        found = "end of input" if token.kind == "EOF" else repr(token.text)
        return InvalidSchemaError(
            f"{message} but found {found} at {token.position}",
            {"line": token.line, "column": token.column},
        )

    # --- grammar ---

    def parse_type(self) -> SchemaNode:
        start = self.peek()
        if start.kind != "NAME" or start.text != "z":
            raise self.error("Expected a 'z.' combinator", start)
        if self._depth >= MAX_DEPTH:
            raise InvalidSchemaError(
                f"Schema nested deeper than {MAX_DEPTH} levels at {start.position}",
                {"line": start.line, "column": start.column},
            )
        self._depth += 1
        try:
            return self._parse_type_body()
        finally:
            self._depth -= 1

    def _parse_type_body(self) -> SchemaNode:
        self.advance()
        self.expect("PUNCT", ".")
        name_token = self.expect("NAME")
        self.expect("PUNCT", "(")
        node = self.parse_combinator(name_token)
        self.expect("PUNCT", ")")

        while self.accept("PUNCT", "."):
            modifier = self.expect("NAME")
            self.expect("PUNCT", "(")
            self.apply_modifier(node, modifier)
            self.expect("PUNCT", ")")
        return node

    def parse_combinator(self, name: Token) -> SchemaNode:
        if name.text in _SCALARS:
            return SchemaNode(kind=_SCALARS[name.text])
        if name.text == "object":
            return self.parse_object_body()
        if name.text == "array":
            return SchemaNode(kind="array", items=self.parse_type())
        if name.text == "enum":
            return SchemaNode(kind="enum", values=self.parse_string_list())
        if name.text == "literal":
            return SchemaNode(kind="literal", values=[self.parse_literal_value()])
        raise InvalidSchemaError(
            f"Unknown combinator 'z.{name.text}' at {name.position}",
            {"line": name.line, "column": name.column},
        )

    def parse_object_body(self) -> SchemaNode:
        node = SchemaNode(kind="object")
        self.expect("PUNCT", "{")
        while not self.accept("PUNCT", "}"):
            key_token = self.peek()
            if key_token.kind == "NAME":
                key = self.advance().text
            elif key_token.kind == "STRING":
                key = _unquote(self.advance().text)
            else:
                raise self.error("Expected a field name", key_token)

            if key in node.fields:
                raise InvalidSchemaError(
                    f"Duplicate field '{key}' at {key_token.position}",
                    {"line": key_token.line, "column": key_token.column},
                )
            self.expect("PUNCT", ":")
            node.fields[key] = self.parse_type()

            if not self.accept("PUNCT", ","):
                self.expect("PUNCT", "}")
                break
        return node

    def parse_string_list(self) -> list[str]:
        self.expect("PUNCT", "[")
        values: list[str] = []
        while not self.accept("PUNCT", "]"):
            values.append(_unquote(self.expect("STRING").text))
            if not self.accept("PUNCT", ","):
                self.expect("PUNCT", "]")
                break
        if not values:
            raise self.error("z.enum needs at least one value", self.peek())
        return values

    def parse_literal_value(self) -> Any:
        token = self.peek()
        if token.kind == "STRING":
            return _unquote(self.advance().text)
        if token.kind == "NUMBER":
            return _number(self.advance().text)
        if token.kind == "NAME" and token.text in ("true", "false"):
            return self.advance().text == "true"
        raise self.error("Expected a string, number or boolean literal", token)

    def parse_bound(self, kind: NodeKind) -> int | float:
        """Numeric modifier argument; lengths and item counts must be non-negative integers."""
        token = self.expect("NUMBER")
        value = _number(token.text)
        if kind in _COUNTED_KINDS and (not isinstance(value, int) or value < 0):
            raise InvalidSchemaError(
                f"Length bound must be a non-negative integer, got {token.text} at {token.position}",
                {"line": token.line, "column": token.column},
            )
        return value

    def apply_modifier(self, node: SchemaNode, modifier: Token) -> None:
        name = modifier.text

        if name == "optional":
            node.optional = True
        elif name == "nullable":
            node.nullable = True
        elif name == "describe":
            node.description = _unquote(self.expect("STRING").text)
        elif name == "strict" and node.kind == "object":
            pass  # objects are always closed
        elif name == "int" and node.kind == "number":
            node.kind = "integer"
        elif name in _STRING_FORMATS and node.kind == "string":
            node.constraints["format"] = _STRING_FORMATS[name]
        elif name in ("min", "max") and node.kind in _BOUND_KEYWORDS:
            keyword = _BOUND_KEYWORDS[node.kind][name]
            node.constraints[keyword] = self.parse_bound(node.kind)
        elif name == "length" and node.kind in _COUNTED_KINDS:
            value = self.parse_bound(node.kind)
            node.constraints[_BOUND_KEYWORDS[node.kind]["min"]] = value
            node.constraints[_BOUND_KEYWORDS[node.kind]["max"]] = value
        elif name == "positive" and node.kind in ("number", "integer"):
            node.constraints["exclusiveMinimum"] = 0
        elif name == "nonnegative" and node.kind in ("number", "integer"):
            node.constraints["minimum"] = 0
        else:
            raise InvalidSchemaError(
                f"Unsupported modifier '.{name}()' on z.{node.kind} at {modifier.position}",
                {"line": modifier.line, "column": modifier.column},
            )


def _unquote(text: str) -> str:
    body = text[1:-1]
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), body)


def _number(text: str) -> int | float:
    value = float(text)
    return int(value) if value.is_integer() and "." not in text and "e" not in text.lower() else value
