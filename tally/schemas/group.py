from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    currency: str = "USD"


class MemberAdd(BaseModel):
    """Add a member by display name."""
    name: str = Field(..., min_length=1, max_length=100)


class MemberResponse(BaseModel):
    user_id: str
    name: str
    joined_at: datetime

    model_config = {"from_attributes": True}


class GroupResponse(BaseModel):
    id: str = Field(validation_alias="_id", serialization_alias="id")
    name: str
    description: Optional[str] = None
    currency: str
    members: List[MemberResponse]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)
