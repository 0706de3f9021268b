"""
Ledger models - the records the settlement engine computes over.

Design principles:
- Immutable (frozen) for the duration of a computation
- Amounts are Decimal, never float
- Balances and transfers are derived, never persisted
- Positive net = creditor (is owed), negative net = debtor (owes)
"""

from decimal import Decimal
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from tally.utils.money import to_decimal


def _coerce_amount(value: Any) -> Decimal:
    try:
        return to_decimal(value)
    except (TypeError, ArithmeticError) as exc:
        raise ValueError(f"Invalid monetary amount: {value!r}") from exc


MonetaryAmount = Annotated[Decimal, BeforeValidator(_coerce_amount)]


class LedgerModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Participant(LedgerModel):
    """A group member as seen by the ledger: opaque id plus display name."""
    id: str
    name: str = ""


class SplitRecord(LedgerModel):
    """One participant's share of an expense. `amount` is authoritative."""
    participant: Participant
    amount: MonetaryAmount
    percentage: Optional[MonetaryAmount] = None  # display only


class ExpenseRecord(LedgerModel):
    payer: Participant
    amount: MonetaryAmount
    splits: List[SplitRecord] = []


class SettlementRecord(LedgerModel):
    """Money already moved outside the engine: from_user paid to_user."""
    from_user: Participant
    to_user: Participant
    amount: MonetaryAmount


class NetBalance(LedgerModel):
    participant: Participant
    net: MonetaryAmount


class Transfer(LedgerModel):
    """Suggested payment: from_user pays to_user."""
    from_user: Participant
    to_user: Participant
    amount: MonetaryAmount = Field(gt=0)


class MemberTotals(LedgerModel):
    """Per-member breakdown behind a net balance: net = total_paid - total_owed."""
    participant: Participant
    total_paid: MonetaryAmount
    total_owed: MonetaryAmount
    net: MonetaryAmount

    def to_net_balance(self) -> NetBalance:
        return NetBalance(participant=self.participant, net=self.net)
