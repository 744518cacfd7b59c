"""Pydantic models for updating records in database."""

from datetime import datetime

from pydantic import BaseModel, Field

from chorerota.core.config import constants
from chorerota.domain.task import TaskKind, TaskPriority


class TaskUpdate(BaseModel):
    """Replacement values for a task's editable fields.

    Every field is written, so switching kind clears the fields of the old
    kind. Household, assignee and creation time are not editable here.
    """

    title: str = Field(..., description="Task title")
    description: str = Field(default="", description="Detailed task description")
    kind: TaskKind = Field(..., description="recurring or one_time")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Task priority")
    estimated_minutes: int = Field(
        default=constants.DEFAULT_ESTIMATED_MINUTES,
        description="Estimated effort in minutes",
    )
    recurrence_rule: str | None = Field(default=None, description="Recurrence rule (recurring tasks only)")
    recurrence_end_date: datetime | None = Field(default=None, description="Inclusive recurrence end")
    due_date: datetime | None = Field(default=None, description="Due instant (one-time tasks only)")


class ExecutionUpdate(BaseModel):
    """Editable fields of an execution. None leaves a field unchanged."""

    notes: str | None = Field(default=None, description="Replacement notes")
    photo_path: str | None = Field(default=None, description="Replacement photo reference")
