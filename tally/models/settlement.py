from datetime import datetime, timezone
from typing import Optional

from pydantic import Field

from tally.models.base import MongoModel, PyObjectId


class Settlement(MongoModel):
    group_id: PyObjectId
    from_user_id: str
    to_user_id: str
    amount_cents: int  # Integer cents
    currency: str = "USD"
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    notes: Optional[str] = None
