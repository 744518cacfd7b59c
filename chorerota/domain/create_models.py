"""Pydantic models for creating records in database."""

from datetime import datetime

from pydantic import BaseModel, Field

from chorerota.core.config import constants
from chorerota.domain.task import TaskKind, TaskPriority


class TaskCreate(BaseModel):
    """Pydantic model for creating a task record.

    Cross-field rules (kind-specific fields, ranges, recurrence syntax) are
    checked by chorerota.services.task_validation so that failures name the
    offending field.
    """

    household_id: str = Field(..., description="Household the task belongs to")
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
    assigned_member_id: str | None = Field(default=None, description="Initial assignee, if any")
