"""Ledger validation utilities."""
from decimal import Decimal
from typing import Iterable, List, Optional

from tally.utils.money import Number, to_decimal


class LedgerValidationError(Exception):
    """Raised when expense, split or settlement data breaks the ledger contract."""
    pass


def validate_expense_splits(amount: Number, splits: List, tolerance: Number = "0.01") -> None:
    """
    Validate an expense's splits at write time.

    Rules:
    - expense amount must be positive
    - at least one split
    - split amounts must be non-negative
    - sum of split amounts must equal the expense amount within tolerance
    """
    total = to_decimal(amount)
    if total <= 0:
        raise LedgerValidationError(f"Expense amount must be positive: {total}")

    if not splits:
        raise LedgerValidationError("At least one split is required")

    split_sum = Decimal("0")
    for split in splits:
        split_amount = to_decimal(split.amount)
        if split_amount < 0:
            raise LedgerValidationError(
                f"Split for '{split.user_id}' has negative amount: {split_amount}"
            )
        split_sum += split_amount

    if abs(split_sum - total) > to_decimal(tolerance):
        raise LedgerValidationError(
            f"Total splits must equal expense amount ({split_sum} != {total})"
        )


def validate_settlement(from_user_id: str, to_user_id: str, amount: Number) -> None:
    """A settlement moves a positive amount between two different members."""
    if to_decimal(amount) <= 0:
        raise LedgerValidationError(f"Settlement amount must be positive: {amount}")
    if from_user_id == to_user_id:
        raise LedgerValidationError("Settlement must be between two different members")


def validate_members(member_ids: Iterable[str], referenced_ids: Iterable[Optional[str]]) -> None:
    """Every referenced user must be a member of the group."""
    members = set(member_ids)
    for user_id in referenced_ids:
        if user_id not in members:
            raise LedgerValidationError(f"User '{user_id}' is not a member of this group")


def validate_currency(group_currency: str, record_currency: Optional[str]) -> str:
    """
    Records are kept in the group's currency; there is no conversion.

    Returns the currency to store (the group's when none is given).
    """
    if record_currency is None:
        return group_currency
    if record_currency.upper() != group_currency.upper():
        raise LedgerValidationError(
            f"Currency {record_currency} does not match group currency {group_currency}"
        )
    return group_currency
