"""Household member domain models and enums."""

from enum import StrEnum

from pydantic import BaseModel, Field


class MemberRole(StrEnum):
    """Member role in the household."""

    OWNER = "owner"
    MEMBER = "member"


class Member(BaseModel):
    """Household member data transfer object."""

    id: str = Field(..., description="Unique member ID")
    household_id: str = Field(..., description="Household the member belongs to")
    name: str = Field(..., description="Display name of the member")
    role: MemberRole = Field(default=MemberRole.MEMBER, description="Member role in household")
    is_active: bool = Field(default=True, description="Inactive members receive no assignments")

    @property
    def is_owner(self) -> bool:
        return self.role == MemberRole.OWNER
