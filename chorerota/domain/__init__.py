"""Domain models and DTOs."""

from chorerota.domain.assignment import (
    AssignmentCommitResult,
    AssignmentFailure,
    AssignmentPlan,
    ExcludedTask,
    ExclusionReason,
    PlannedAssignment,
)
from chorerota.domain.create_models import TaskCreate
from chorerota.domain.execution import Execution
from chorerota.domain.member import Member, MemberRole
from chorerota.domain.task import NotDueReason, Task, TaskKind, TaskPriority
from chorerota.domain.update_models import ExecutionUpdate, TaskUpdate
from chorerota.domain.validation import ValidationResult
from chorerota.domain.workload import MemberWorkload


__all__ = [
    "AssignmentCommitResult",
    "AssignmentFailure",
    "AssignmentPlan",
    "ExcludedTask",
    "ExclusionReason",
    "Execution",
    "ExecutionUpdate",
    "Member",
    "MemberRole",
    "MemberWorkload",
    "NotDueReason",
    "PlannedAssignment",
    "Task",
    "TaskCreate",
    "TaskKind",
    "TaskPriority",
    "TaskUpdate",
    "ValidationResult",
]
