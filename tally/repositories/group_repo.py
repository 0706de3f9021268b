from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from tally.models.base import parse_object_id
from tally.models.group import Group, Member
from tally.schemas.group import GroupCreate, MemberAdd


class GroupRepository:
    """Group and membership database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["groups"]

    async def create_group(self, group_data: GroupCreate) -> Group:
        """Create an empty group."""
        group = Group(
            name=group_data.name,
            description=group_data.description,
            currency=group_data.currency,
        )
        result = await self.collection.insert_one(group.to_document())
        group.id = result.inserted_id
        return group

    async def get_group(self, group_id: str) -> Optional[Group]:
        """Get a group by id, None when missing or the id is malformed."""
        oid = parse_object_id(group_id)
        if oid is None:
            return None

        doc = await self.collection.find_one({"_id": oid, "is_deleted": False})
        if doc:
            return Group(**doc)
        return None

    async def add_member(self, group_id: str, member_data: MemberAdd) -> Optional[Member]:
        """Append a member to the group. Returns None when the group is missing."""
        oid = parse_object_id(group_id)
        if oid is None:
            return None

        member = Member(name=member_data.name)
        result = await self.collection.update_one(
            {"_id": oid, "is_deleted": False},
            {
                "$push": {"members": member.model_dump(mode="python")},
                "$set": {"updated_at": datetime.now(timezone.utc)}
            }
        )
        if result.matched_count == 0:
            return None
        return member
