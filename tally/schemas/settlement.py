from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class SettlementCreate(BaseModel):
    """Record money already paid; same shape as a suggested transfer."""
    from_user_id: str = Field(..., min_length=1)
    to_user_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    currency: Optional[str] = None
    date: Optional[datetime] = None
    notes: Optional[str] = None


class SettlementResponse(BaseModel):
    id: str
    group_id: str
    from_user_id: str
    to_user_id: str
    amount: Decimal
    currency: str
    date: datetime
    notes: Optional[str] = None
    created_at: datetime
