from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from tally.models.base import MongoModel, PyObjectId


def _new_member_id() -> str:
    return str(PyObjectId())


# Embedded documents don't need MongoModel (no separate _id)
class Member(BaseModel):
    user_id: str = Field(default_factory=_new_member_id)
    name: str
    joined_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Group(MongoModel):
    name: str
    description: Optional[str] = None
    currency: str = "USD"
    members: List[Member] = []
    is_deleted: bool = False

    def member_ids(self) -> List[str]:
        return [member.user_id for member in self.members]
