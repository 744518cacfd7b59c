"""Typed result of a single validation rule."""

from pydantic import BaseModel, Field


class ValidationResult(BaseModel):
    """Either ok, or the field that failed and why."""

    ok: bool = Field(..., description="Whether the rule passed")
    field: str | None = Field(default=None, description="Offending field when the rule failed")
    reason: str | None = Field(default=None, description="Failure explanation")

    @classmethod
    def passed(cls) -> "ValidationResult":
        return cls(ok=True)

    @classmethod
    def failed(cls, field: str, reason: str) -> "ValidationResult":
        return cls(ok=False, field=field, reason=reason)
