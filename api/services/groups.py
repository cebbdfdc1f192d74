"""Group directory and memberships."""

from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.exceptions import ConflictError, InvalidInputError, NotFoundError
from core.security import SessionContext, require_admin
from database.models.groups import Group, GroupMembership
from database.models.profiles import Profile

logger = logging.getLogger(__name__)


async def list_groups(db: AsyncSession, ctx: SessionContext) -> List[Dict[str, Any]]:
    require_admin(ctx)
    result = await db.execute(
        select(Group)
        .options(selectinload(Group.memberships).selectinload(GroupMembership.user))
        .order_by(Group.name)
        .execution_options(populate_existing=True)
    )
    return [
        {
            "id": group.id,
            "name": group.name,
            "members": sorted(
                (
                    {"user_id": m.user_id, "full_name": m.user.full_name}
                    for m in group.memberships
                ),
                key=lambda member: member["full_name"],
            ),
        }
        for group in result.scalars().all()
    ]


async def create_group(db: AsyncSession, ctx: SessionContext, name: str) -> Dict[str, Any]:
    require_admin(ctx)
    name = name.strip()
    if not name:
        raise InvalidInputError("Group name must not be empty")

    group = Group(name=name)
    db.add(group)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(f"Group '{name}' already exists")

    logger.info(f"Group {group.id} created by user {ctx.user_id}")
    return {"id": group.id, "name": group.name, "members": []}


async def delete_group(db: AsyncSession, ctx: SessionContext, group_id: int) -> None:
    """Delete a group with its memberships and release schedule."""
    require_admin(ctx)
    result = await db.execute(delete(Group).where(Group.id == group_id))
    if not result.rowcount:
        await db.rollback()
        raise NotFoundError(f"Group {group_id} not found")
    await db.commit()
    logger.info(f"Group {group_id} deleted by user {ctx.user_id}")


async def toggle_membership(
    db: AsyncSession,
    ctx: SessionContext,
    group_id: int,
    user_id: int,
) -> Dict[str, Optional[int]]:
    """
    Toggle a user's membership of a group.

    A member is removed. Anyone else is moved into the group, leaving any
    previous group in the same transaction, so a user is in at most one group.

    Returns:
        {"user_id": ..., "group_id": the user's group afterwards or None}
    """
    require_admin(ctx)
    if await db.get(Group, group_id) is None:
        raise NotFoundError(f"Group {group_id} not found")
    if await db.get(Profile, user_id) is None:
        raise NotFoundError(f"User {user_id} not found")

    current = await db.scalar(
        select(GroupMembership.group_id).where(
            GroupMembership.user_id == user_id,
            GroupMembership.group_id == group_id,
        )
    )

    await db.execute(delete(GroupMembership).where(GroupMembership.user_id == user_id))
    if current is not None:
        await db.commit()
        logger.info(f"User {user_id} removed from group {group_id}")
        return {"user_id": user_id, "group_id": None}

    db.add(GroupMembership(user_id=user_id, group_id=group_id))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Membership changed concurrently; try again")

    logger.info(f"User {user_id} moved to group {group_id} by user {ctx.user_id}")
    return {"user_id": user_id, "group_id": group_id}
