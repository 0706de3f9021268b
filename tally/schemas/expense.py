from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tally.models.expense import SplitType


class SplitBase(BaseModel):
    """
    One member's share.

    - equal splits only need user_id
    - percentage splits need percentage (0-100)
    - fixed splits need amount
    """
    user_id: str
    amount: Optional[Decimal] = Field(None, ge=0)
    percentage: Optional[Decimal] = Field(None, ge=0, le=100)


class ExpenseCreate(BaseModel):
    title: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    currency: Optional[str] = None
    date: Optional[datetime] = None
    notes: Optional[str] = None
    paid_by_id: str = Field(..., min_length=1)
    split_type: SplitType = SplitType.EQUAL
    splits: List[SplitBase] = Field(..., min_length=1)


class SplitResponse(BaseModel):
    user_id: str
    amount: Decimal
    percentage: Optional[Decimal] = None
    is_paid: bool = False


class ExpenseResponse(BaseModel):
    id: str
    group_id: str
    title: str
    amount: Decimal
    currency: str
    date: datetime
    notes: Optional[str] = None
    paid_by_id: str
    split_type: SplitType
    splits: List[SplitResponse]
    created_at: datetime

    model_config = ConfigDict(populate_by_name=True)
