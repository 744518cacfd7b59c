"""Execution domain models for the completion ledger."""

from datetime import date, datetime

from pydantic import BaseModel, Field


class Execution(BaseModel):
    """Completion record. Immutable apart from the counts flag, notes and photo."""

    id: str = Field(..., description="Unique execution ID from database")
    task_id: str = Field(..., description="ID of the completed task")
    member_id: str = Field(..., description="ID of the member who completed the task")
    household_id: str = Field(..., description="Household of the task")
    completed_at: datetime = Field(..., description="When the task was completed (UTC)")
    week_starting: date = Field(..., description="Monday (UTC) of the week owning this completion")
    notes: str | None = Field(default=None, description="Optional completion notes")
    photo_path: str | None = Field(default=None, description="Reference to an attached photo")
    counts_for_completion: bool | None = Field(
        default=None,
        description="False once invalidated by an owner; None means counted",
    )
    is_recurring: bool = Field(..., description="Whether the task was recurring when completed")

    @property
    def counts(self) -> bool:
        """Unset counts as True; only an explicit False is excluded."""
        return self.counts_for_completion is not False
