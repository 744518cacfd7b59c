"""Read access to household members (member CRUD lives in the household service)."""

import logging

from chorerota.core import db_client
from chorerota.core.db_client import id_sort_key, sanitize_param
from chorerota.core.errors import ForbiddenError, NotFoundError
from chorerota.core.logging import span
from chorerota.domain.member import Member, MemberRole


logger = logging.getLogger(__name__)


async def get_member(*, member_id: str) -> Member:
    """Get a member by ID.

    Raises:
        NotFoundError: If the member does not exist
    """
    try:
        record = await db_client.get_record(collection="members", record_id=member_id)
    except db_client.RecordNotFoundError:
        raise NotFoundError("Member", member_id) from None
    return Member.model_validate(record)


async def get_active_members(*, household_id: str) -> list[Member]:
    """Get all active members of a household, ordered by member ID."""
    with span("member_service.get_active_members"):
        records = await db_client.list_all_records(
            collection="members",
            filter_query=f'household_id = "{sanitize_param(household_id)}" && is_active = "true"',
        )
        members = [Member.model_validate(record) for record in records]
        members.sort(key=lambda m: id_sort_key(m.id))

        logger.debug("Loaded %d active members for household %s", len(members), household_id)
        return members


async def is_owner(*, household_id: str, member_id: str) -> bool:
    """Whether member_id is an active owner of the household."""
    try:
        member = await get_member(member_id=member_id)
    except NotFoundError:
        return False
    return member.household_id == household_id and member.is_active and member.role == MemberRole.OWNER


async def require_owner(*, household_id: str, member_id: str) -> Member:
    """Return the member if they own the household.

    Raises:
        ForbiddenError: If the member is unknown, inactive, from another household or not an owner
    """
    if not await is_owner(household_id=household_id, member_id=member_id):
        logger.warning(
            "Owner check failed",
            extra={"household_id": household_id, "member_id": member_id},
        )
        msg = f"Member {member_id} is not an owner of household {household_id}"
        raise ForbiddenError(msg)
    return await get_member(member_id=member_id)


async def require_household_member(*, household_id: str, member_id: str) -> Member:
    """Return the member if they are an active member of the household.

    Raises:
        NotFoundError: If the member does not exist, is inactive or belongs elsewhere
    """
    member = await get_member(member_id=member_id)
    if member.household_id != household_id or not member.is_active:
        raise NotFoundError("Member", member_id)
    return member
