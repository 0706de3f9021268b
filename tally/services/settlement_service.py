"""
Settle-up planning: min cash flow between group members.

Greedy largest-to-largest matching. The biggest creditor is paid by the
biggest debtor until one of them is square, then the next biggest pair is
matched. Both sides live in heaps so each step is O(log n). Ties on
magnitude go to whoever came first in the input, so identical ledgers
always produce identical plans.
"""

import heapq
from decimal import Decimal
from typing import Dict, List, Sequence, Tuple

from tally.models.ledger import NetBalance, Participant, Transfer
from tally.utils.money import DEFAULT_EPSILON, ZERO, Number, round_money, to_decimal

# (sort key, input position, participant); the sort key is -net for creditors
# and net for debtors so heapq pops the largest magnitude first.
_HeapEntry = Tuple[Decimal, int, Participant]


def minimize_transfers(
    balances: Sequence[NetBalance],
    epsilon: Number = DEFAULT_EPSILON,
) -> List[Transfer]:
    """
    Compute the transfers that bring every balance within epsilon of zero.

    - Balances within +/- epsilon (inclusive) are already settled and skipped
    - Each transfer is rounded to cents and goes from a debtor to a creditor
    - At most (number of unsettled members - 1) transfers for a balanced ledger
    - Empty, settled or one-sided input gives an empty list

    The input is never modified.
    """
    eps = to_decimal(epsilon)

    creditors: List[_HeapEntry] = []
    debtors: List[_HeapEntry] = []
    for position, balance in enumerate(balances):
        if balance.net > eps:
            creditors.append((-balance.net, position, balance.participant))
        elif balance.net < -eps:
            debtors.append((balance.net, position, balance.participant))

    heapq.heapify(creditors)
    heapq.heapify(debtors)

    transfers: List[Transfer] = []

    while creditors and debtors:
        credit_key, creditor_pos, creditor = heapq.heappop(creditors)
        debit, debtor_pos, debtor = heapq.heappop(debtors)
        credit = -credit_key

        smaller = min(credit, -debit)
        amount = round_money(smaller)
        if amount > 0:
            transfers.append(Transfer(from_user=debtor, to_user=creditor, amount=amount))
            credit -= amount
            debit += amount
        else:
            # Less than half a cent on the smaller side: rounding noise
            if credit == smaller:
                credit = ZERO
            if -debit == smaller:
                debit = ZERO

        if credit > eps:
            heapq.heappush(creditors, (-credit, creditor_pos, creditor))
        if debit < -eps:
            heapq.heappush(debtors, (debit, debtor_pos, debtor))

    return transfers


def validate_transfers(
    balances: Sequence[NetBalance],
    transfers: Sequence[Transfer],
    epsilon: Number = DEFAULT_EPSILON,
) -> bool:
    """
    Check that applying `transfers` leaves every balance within epsilon of zero.

    A transfer raises the payer's balance and lowers the recipient's.
    Members that only appear in transfers start from zero.
    """
    eps = to_decimal(epsilon)
    running: Dict[str, Decimal] = {}

    for balance in balances:
        member_id = balance.participant.id
        running[member_id] = running.get(member_id, ZERO) + balance.net

    for transfer in transfers:
        from_id = transfer.from_user.id
        to_id = transfer.to_user.id
        running[from_id] = running.get(from_id, ZERO) + transfer.amount
        running[to_id] = running.get(to_id, ZERO) - transfer.amount

    return all(abs(value) <= eps for value in running.values())


def get_total_transfer_amount(transfers: Sequence[Transfer]) -> Decimal:
    """Total money moved by a transfer plan."""
    return round_money(sum((transfer.amount for transfer in transfers), ZERO))
