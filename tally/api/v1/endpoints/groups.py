from fastapi import APIRouter, Depends, HTTPException, status

from tally.api.deps import get_group_or_404
from tally.db.mongo import get_db
from tally.models.group import Group
from tally.repositories.group_repo import GroupRepository
from tally.schemas.group import GroupCreate, GroupResponse, MemberAdd, MemberResponse

router = APIRouter()


def _group_response(group: Group) -> GroupResponse:
    doc = group.model_dump(by_alias=True)
    doc["_id"] = str(group.id)
    return GroupResponse.model_validate(doc)


@router.post("/", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(group_in: GroupCreate, db=Depends(get_db)):
    """Create a new group with no members"""
    group = await GroupRepository(db).create_group(group_in)
    return _group_response(group)


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(group: Group = Depends(get_group_or_404)):
    return _group_response(group)


@router.post("/{group_id}/members", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
async def add_member(group_id: str, member_in: MemberAdd, db=Depends(get_db)):
    """Add a member to a group by display name"""
    member = await GroupRepository(db).add_member(group_id, member_in)
    if not member:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Group not found"
        )
    return member
