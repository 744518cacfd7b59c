from chorerota.services import (
    assignment_service,
    execution_service,
    member_service,
    recurrence_service,
    rotation_service,
    task_service,
    workload_service,
)


__all__ = [
    "assignment_service",
    "execution_service",
    "member_service",
    "recurrence_service",
    "rotation_service",
    "task_service",
    "workload_service",
]
