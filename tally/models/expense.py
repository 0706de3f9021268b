from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tally.models.base import MongoModel, PyObjectId


class SplitType(str, Enum):
    EQUAL = "equal"
    PERCENTAGE = "percentage"
    FIXED = "fixed"


# Embedded documents don't need MongoModel (no separate _id)
class ExpenseSplit(BaseModel):
    user_id: str
    amount_cents: int  # Integer cents
    percentage: Optional[float] = None  # Display only for percentage splits
    is_paid: bool = False  # Informational, never used in netting


class Expense(MongoModel):
    group_id: PyObjectId
    title: str
    amount_cents: int  # Integer cents
    currency: str = "USD"
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    notes: Optional[str] = None
    paid_by_id: str
    split_type: SplitType = SplitType.EQUAL
    splits: List[ExpenseSplit] = []
    is_deleted: bool = False

    model_config = ConfigDict(use_enum_values=True)
