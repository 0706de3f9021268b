"""
Group ledger: loads a group's stored records and runs the balance and
settle-up computations over them.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Sequence, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from tally.models.expense import Expense
from tally.models.group import Group
from tally.models.ledger import (
    ExpenseRecord,
    MemberTotals,
    NetBalance,
    Participant,
    SettlementRecord,
    SplitRecord,
    Transfer,
)
from tally.models.settlement import Settlement
from tally.repositories.expense_repo import ExpenseRepository
from tally.repositories.settlement_repo import SettlementRepository
from tally.services.ledger_service import compute_member_totals, conservation_drift
from tally.services.settlement_service import minimize_transfers, validate_transfers
from tally.utils.money import DEFAULT_EPSILON, from_cents

logger = logging.getLogger(__name__)


def participants_for(group: Group) -> List[Participant]:
    return [Participant(id=member.user_id, name=member.name) for member in group.members]


def member_index(participants: Sequence[Participant]) -> Dict[str, Participant]:
    return {participant.id: participant for participant in participants}


def _lookup(members: Dict[str, Participant], user_id: str) -> Participant:
    # Unknown ids pass through so the aggregator can reject them by name
    return members.get(user_id) or Participant(id=user_id)


def to_expense_record(expense: Expense, members: Dict[str, Participant]) -> ExpenseRecord:
    return ExpenseRecord(
        payer=_lookup(members, expense.paid_by_id),
        amount=from_cents(expense.amount_cents),
        splits=[
            SplitRecord(
                participant=_lookup(members, split.user_id),
                amount=from_cents(split.amount_cents),
                percentage=split.percentage,
            )
            for split in expense.splits
        ],
    )


def to_settlement_record(settlement: Settlement, members: Dict[str, Participant]) -> SettlementRecord:
    return SettlementRecord(
        from_user=_lookup(members, settlement.from_user_id),
        to_user=_lookup(members, settlement.to_user_id),
        amount=from_cents(settlement.amount_cents),
    )


class GroupLedgerService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.expenses = ExpenseRepository(db)
        self.settlements = SettlementRepository(db)

    async def get_member_totals(
        self, group: Group, epsilon: Decimal = DEFAULT_EPSILON
    ) -> List[MemberTotals]:
        """Paid / owed / net for every member, from everything recorded so far."""
        participants = participants_for(group)
        members = member_index(participants)
        group_id = str(group.id)

        expenses = await self.expenses.list_expenses(group_id)
        settlements = await self.settlements.list_settlements(group_id)

        totals = compute_member_totals(
            participants,
            [to_expense_record(expense, members) for expense in expenses],
            [to_settlement_record(settlement, members) for settlement in settlements],
        )

        drift = conservation_drift([entry.to_net_balance() for entry in totals])
        if abs(drift) > epsilon:
            logger.warning("Group %s balances do not sum to zero (drift %s)", group_id, drift)
        return totals

    async def get_balances(
        self, group: Group, epsilon: Decimal = DEFAULT_EPSILON
    ) -> List[NetBalance]:
        totals = await self.get_member_totals(group, epsilon)
        return [entry.to_net_balance() for entry in totals]

    async def plan_settle_up(
        self, group: Group, epsilon: Decimal = DEFAULT_EPSILON
    ) -> Tuple[List[Transfer], bool]:
        """Suggested transfers plus whether they fully settle the group."""
        balances = await self.get_balances(group, epsilon)
        transfers = minimize_transfers(balances, epsilon)
        is_valid = validate_transfers(balances, transfers, epsilon)
        if not is_valid:
            logger.warning("Settle-up plan for group %s leaves residual balances", group.id)
        return transfers, is_valid