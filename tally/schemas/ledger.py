from decimal import Decimal
from typing import List

from pydantic import BaseModel


class BalanceResponse(BaseModel):
    """One member's position. Positive net = gets back, negative = owes."""
    user_id: str
    user_name: str
    total_paid: Decimal
    total_owed: Decimal
    net: Decimal


class LedgerResponse(BaseModel):
    group_id: str
    currency: str
    balances: List[BalanceResponse]
    total_net: Decimal
    is_balanced: bool


class TransferResponse(BaseModel):
    from_user_id: str
    from_user_name: str
    to_user_id: str
    to_user_name: str
    amount: Decimal


class SettleUpResponse(BaseModel):
    group_id: str
    currency: str
    transfers: List[TransferResponse]
    total_amount: Decimal
    is_valid: bool
