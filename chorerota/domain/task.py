"""Task domain models and enums."""

from datetime import datetime
from enum import IntEnum, StrEnum

from pydantic import BaseModel, Field

from chorerota.core.config import constants


class TaskKind(StrEnum):
    """Whether a task repeats or happens once."""

    RECURRING = "recurring"
    ONE_TIME = "one_time"


class TaskPriority(IntEnum):
    """Task priority, ordered LOW < MEDIUM < HIGH."""

    LOW = 0
    MEDIUM = 1
    HIGH = 2


class NotDueReason(StrEnum):
    """Why a task is not due at a given instant."""

    INACTIVE = "inactive"
    NOT_YET_DUE = "not_yet_due"  # One-time task whose due date is still ahead
    RECURRENCE_ENDED = "recurrence_ended"
    NO_OCCURRENCE_THIS_WEEK = "no_occurrence_this_week"


class Task(BaseModel):
    """Task data transfer object."""

    id: str = Field(..., description="Unique task ID from database")
    household_id: str = Field(..., description="Household the task belongs to")
    title: str = Field(..., description="Task title")
    description: str = Field(default="", description="Detailed task description")
    kind: TaskKind = Field(..., description="recurring or one_time")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Task priority")
    estimated_minutes: int = Field(
        default=constants.DEFAULT_ESTIMATED_MINUTES,
        description="Estimated effort in minutes (5-480)",
    )
    recurrence_rule: str | None = Field(default=None, description="Recurrence rule (recurring tasks only)")
    recurrence_end_date: datetime | None = Field(
        default=None,
        description="Inclusive end of recurrence (recurring tasks only)",
    )
    due_date: datetime | None = Field(default=None, description="Due instant (one-time tasks only)")
    assigned_member_id: str | None = Field(default=None, description="Assigned member ID, None if unassigned")
    is_active: bool = Field(default=True, description="Inactive tasks are ignored by scheduling and workload")
    created_at: datetime = Field(..., description="Creation timestamp (UTC)")

    @property
    def is_recurring(self) -> bool:
        return self.kind == TaskKind.RECURRING

    @property
    def is_assigned(self) -> bool:
        return self.assigned_member_id is not None
