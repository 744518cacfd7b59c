"""Assignment plan models returned by the assignment engine."""

from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from chorerota.domain.task import TaskPriority


class ExclusionReason(StrEnum):
    """Why an unassigned active task was left out of a plan."""

    INACTIVE = "inactive"
    NOT_YET_DUE = "not_yet_due"
    RECURRENCE_ENDED = "recurrence_ended"
    NO_OCCURRENCE_THIS_WEEK = "no_occurrence_this_week"
    NO_ELIGIBLE_MEMBERS = "no_eligible_members"


class PlannedAssignment(BaseModel):
    """One (task, member) pair of a plan, with the numbers that explain it."""

    task_id: str = Field(..., description="Task to assign")
    task_title: str = Field(..., description="Task title")
    priority: TaskPriority = Field(..., description="Task priority")
    estimated_minutes: int = Field(..., description="Task effort estimate")
    weight: int = Field(..., description="priority weight x estimated minutes")
    member_id: str = Field(..., description="Proposed member")
    member_name: str = Field(..., description="Proposed member's display name")
    load_before: int = Field(..., description="Member's running load before this task")
    load_after: int = Field(..., description="Member's running load after this task")


class ExcludedTask(BaseModel):
    """Unassigned active task that the plan did not place."""

    task_id: str = Field(..., description="Excluded task")
    task_title: str = Field(..., description="Task title")
    reason: ExclusionReason = Field(..., description="Why the task was excluded")


class AssignmentPlan(BaseModel):
    """Ordered, deterministic auto-assignment plan for one household."""

    household_id: str = Field(..., description="Household the plan is for")
    as_of: datetime = Field(..., description="Instant due-ness and load were evaluated at")
    week_starting: date = Field(..., description="Scheduling week of the plan")
    assignments: list[PlannedAssignment] = Field(default_factory=list, description="Assignments in apply order")
    excluded: list[ExcludedTask] = Field(default_factory=list, description="Tasks left unassigned and why")
    initial_loads: dict[str, int] = Field(default_factory=dict, description="Member loads before the batch")
    final_loads: dict[str, int] = Field(default_factory=dict, description="Member loads after the batch")

    @property
    def is_empty(self) -> bool:
        return not self.assignments


class AssignmentFailure(BaseModel):
    """A planned assignment that could not be persisted."""

    task_id: str = Field(..., description="Task that failed")
    member_id: str = Field(..., description="Member it was planned for")
    error: str = Field(..., description="Failure description")


class AssignmentCommitResult(BaseModel):
    """Outcome of committing a plan: applied pairs plus per-task failures."""

    plan: AssignmentPlan = Field(..., description="The plan that was committed")
    applied: list[PlannedAssignment] = Field(default_factory=list, description="Persisted assignments, in order")
    skipped: list[str] = Field(
        default_factory=list,
        description="Task IDs changed by a concurrent writer before their turn (left untouched)",
    )
    failures: list[AssignmentFailure] = Field(default_factory=list, description="Per-task persistence failures")
