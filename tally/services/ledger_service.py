"""
Balance aggregation.

Turns a group's expenses and recorded settlements into one net balance per
member:

1. Every member starts at zero
2. An expense credits its payer and debits each split participant
3. A settlement credits the member who paid and debits the one who received
4. Each final net is rounded to cents once, half away from zero

Nothing here touches the database; callers load the records and pass them in.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Sequence

from tally.models.ledger import (
    ExpenseRecord,
    MemberTotals,
    NetBalance,
    Participant,
    SettlementRecord,
)
from tally.utils.ledger_validation import LedgerValidationError
from tally.utils.money import DEFAULT_EPSILON, ZERO, Number, round_money, to_decimal

logger = logging.getLogger(__name__)


def compute_member_totals(
    participants: Sequence[Participant],
    expenses: Sequence[ExpenseRecord],
    settlements: Sequence[SettlementRecord] = (),
) -> List[MemberTotals]:
    """
    Aggregate what each member paid and owes.

    Returns one entry per participant, in the order given.
    Raises LedgerValidationError on negative amounts or references to
    members outside `participants`.
    """
    members = _index_participants(participants)
    paid: Dict[str, Decimal] = {member_id: ZERO for member_id in members}
    owed: Dict[str, Decimal] = {member_id: ZERO for member_id in members}

    for expense in expenses:
        payer_id = _require_member(members, expense.payer, "Expense payer")
        _require_non_negative(expense.amount, f"Expense paid by '{payer_id}'")
        paid[payer_id] += expense.amount

        split_sum = ZERO
        for split in expense.splits:
            user_id = _require_member(members, split.participant, "Split participant")
            _require_non_negative(split.amount, f"Split for '{user_id}'")
            owed[user_id] += split.amount
            split_sum += split.amount

        if abs(split_sum - expense.amount) > DEFAULT_EPSILON:
            logger.warning(
                "Expense paid by %s: splits sum to %s but amount is %s",
                payer_id, split_sum, expense.amount,
            )

    # A settlement is an expense paid by from_user with to_user as sole beneficiary
    for settlement in settlements:
        from_id = _require_member(members, settlement.from_user, "Settlement sender")
        to_id = _require_member(members, settlement.to_user, "Settlement recipient")
        _require_non_negative(settlement.amount, f"Settlement from '{from_id}'")
        if from_id == to_id:
            raise LedgerValidationError(
                f"Settlement from '{from_id}' to itself"
            )
        paid[from_id] += settlement.amount
        owed[to_id] += settlement.amount

    return [
        MemberTotals(
            participant=participant,
            total_paid=round_money(paid[participant.id]),
            total_owed=round_money(owed[participant.id]),
            net=round_money(paid[participant.id] - owed[participant.id]),
        )
        for participant in members.values()
    ]


def compute_balances(
    participants: Sequence[Participant],
    expenses: Sequence[ExpenseRecord],
    settlements: Sequence[SettlementRecord] = (),
) -> List[NetBalance]:
    """One NetBalance per participant: paid minus owed, settlements applied."""
    totals = compute_member_totals(participants, expenses, settlements)
    return [entry.to_net_balance() for entry in totals]


def conservation_drift(balances: Sequence[NetBalance]) -> Decimal:
    """Sum of all nets. Zero for internally consistent ledgers."""
    return sum((balance.net for balance in balances), ZERO)


def check_conservation(balances: Sequence[NetBalance], epsilon: Number = DEFAULT_EPSILON) -> bool:
    """True when the nets sum to zero within epsilon."""
    return abs(conservation_drift(balances)) <= to_decimal(epsilon)


# ===== PRIVATE HELPERS =====

def _index_participants(participants: Sequence[Participant]) -> Dict[str, Participant]:
    members: Dict[str, Participant] = {}
    for participant in participants:
        if participant.id in members:
            raise LedgerValidationError(f"Duplicate participant '{participant.id}'")
        members[participant.id] = participant
    return members


def _require_member(members: Dict[str, Participant], participant: Participant, role: str) -> str:
    if participant.id not in members:
        raise LedgerValidationError(f"{role} '{participant.id}' is not a group member")
    return participant.id


def _require_non_negative(amount: Decimal, what: str) -> None:
    if amount < 0:
        raise LedgerValidationError(f"{what} has negative amount: {amount}")
