"""
Extraction Models - Data types for the extraction domain.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator

from localextract.config import ErrorCode, LocalExtractError
from localextract.domains.schema import ResolvedSchema


@dataclass(frozen=True)
class ExtractionRequest:
    """Immutable input to one generation attempt."""

    document_text: str
    resolved_schema: ResolvedSchema


class ExtractionStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class ExtractionResult(BaseModel):
    """
    Outcome of one extraction attempt.

    Exactly one of ``json_text`` (success) or ``reason`` (failure) is set.
    """

    status: ExtractionStatus
    json_text: str | None = None
    reason: ErrorCode | None = None
    message: str | None = None
    detail: str | None = None

    # Processing info
    elapsed_seconds: float = Field(default=0.0, ge=0.0)
    model_used: str = ""
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @model_validator(mode="after")
    def check_variant(self) -> "ExtractionResult":
        """Success carries JSON text, failure carries a reason."""
        if self.status is ExtractionStatus.SUCCESS:
            if self.json_text is None or self.reason is not None:
                raise ValueError("success results need json_text and no reason")
        elif self.reason is None or self.json_text is not None:
            raise ValueError("failure results need a reason and no json_text")
        return self

    @classmethod
    def success(cls, json_text: str, **kwargs: Any) -> "ExtractionResult":
        return cls(status=ExtractionStatus.SUCCESS, json_text=json_text, **kwargs)

    @classmethod
    def failure(
        cls,
        reason: ErrorCode,
        message: str,
        detail: str | None = None,
        **kwargs: Any,
    ) -> "ExtractionResult":
        return cls(
            status=ExtractionStatus.FAILURE,
            reason=reason,
            message=message,
            detail=detail,
            **kwargs,
        )

    @classmethod
    def from_error(cls, error: LocalExtractError, message: str, **kwargs: Any) -> "ExtractionResult":
        """Failure result carrying the error code and its message as detail."""
        return cls.failure(error.code, message, detail=error.message, **kwargs)

    @property
    def ok(self) -> bool:
        return self.status is ExtractionStatus.SUCCESS

    @property
    def data(self) -> Any:
        """Decoded JSON payload of a successful result."""
        if self.json_text is None:
            raise ValueError(f"No JSON output: {self.message}")
        return json.loads(self.json_text)
