"""Workload snapshot models (derived, never persisted)."""

from pydantic import BaseModel, Field


class MemberWorkload(BaseModel):
    """Weighted load of one member for the active week."""

    member_id: str = Field(..., description="Member ID")
    assigned_load: int = Field(default=0, description="Weight of active tasks currently assigned")
    completed_load: int = Field(default=0, description="Weight of counted completions this week")

    @property
    def weighted_load(self) -> int:
        return self.assigned_load + self.completed_load
