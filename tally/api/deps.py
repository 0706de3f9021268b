from fastapi import Depends, HTTPException, status

from tally.db.mongo import get_db
from tally.models.group import Group
from tally.repositories.group_repo import GroupRepository


async def get_group_or_404(group_id: str, db=Depends(get_db)) -> Group:
    group = await GroupRepository(db).get_group(group_id)
    if not group:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Group not found"
        )
    return group
