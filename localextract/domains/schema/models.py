"""
Schema Models - Schema choices, resolved schemas and the predefined record.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CUSTOM_SCHEMA = """z.object({
  name: z.string(),
  email: z.string().email(),
  subscribed: z.boolean()
})"""


class PredefinedSchema(BaseModel):
    """Use the built-in account record schema."""

    kind: Literal["predefined"] = "predefined"

    model_config = {"frozen": True}


class CustomSchema(BaseModel):
    """Use a user-supplied schema expression."""

    kind: Literal["custom"] = "custom"
    source_text: str = DEFAULT_CUSTOM_SCHEMA

    model_config = {"frozen": True}


SchemaChoice = Annotated[PredefinedSchema | CustomSchema, Field(discriminator="kind")]


# Financial account record extracted from statements
class AccountRecord(BaseModel):
    balance: float
    account_type: str
    account_currency: str
    interest_rate_percent: float
    bank_name: str
    iban: str
    bic_swift: str

    model_config = ConfigDict(extra="forbid", strict=True)


@dataclass(frozen=True)
class ResolvedSchema:
    """
    Canonical JSON Schema plus the model that validates generated output.

    ``json_schema`` is passed to the engine as the structural constraint.
    """

    json_schema: dict[str, Any]
    model: type[BaseModel]
    kind: Literal["predefined", "custom"]

    @property
    def property_names(self) -> list[str]:
        return list(self.json_schema.get("properties", {}))
