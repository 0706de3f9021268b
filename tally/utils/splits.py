"""Turn an expense amount into per-member split amounts."""
from decimal import Decimal
from typing import List, Optional, Sequence

from tally.models.expense import SplitType
from tally.schemas.expense import SplitBase
from tally.utils.ledger_validation import LedgerValidationError
from tally.utils.money import Number, from_cents, round_money, to_cents, to_decimal

HUNDRED = Decimal("100")
PERCENT_TOLERANCE = Decimal("0.01")


def build_splits(
    split_type: SplitType,
    amount: Number,
    user_ids: Sequence[str],
    values: Optional[Sequence[Optional[Number]]] = None,
) -> List[SplitBase]:
    """
    Compute split amounts for an expense.

    - equal: cents divided evenly, remainder cents go to the first members
    - percentage: `values` are percentages summing to 100; the last member
      absorbs the rounding residue so the amounts add up exactly
    - fixed: `values` are the amounts
    """
    if not user_ids:
        raise LedgerValidationError("At least one split is required")

    try:
        split_type = SplitType(split_type)
    except ValueError:
        raise LedgerValidationError(f"Unknown split type: {split_type}")

    if split_type == SplitType.EQUAL:
        return _equal_splits(amount, user_ids)

    if values is None or len(values) != len(user_ids):
        raise LedgerValidationError(
            f"{split_type.value} split needs one value per member"
        )
    if any(value is None for value in values):
        raise LedgerValidationError(f"{split_type.value} split is missing a value")

    if split_type == SplitType.PERCENTAGE:
        return _percentage_splits(amount, user_ids, values)
    return [
        SplitBase(user_id=user_id, amount=round_money(value))
        for user_id, value in zip(user_ids, values)
    ]


def _equal_splits(amount: Number, user_ids: Sequence[str]) -> List[SplitBase]:
    total_cents = to_cents(amount)
    per_user, remainder = divmod(total_cents, len(user_ids))
    return [
        SplitBase(user_id=user_id, amount=from_cents(per_user + (1 if index < remainder else 0)))
        for index, user_id in enumerate(user_ids)
    ]


def _percentage_splits(
    amount: Number, user_ids: Sequence[str], percentages: Sequence[Number]
) -> List[SplitBase]:
    total = round_money(amount)
    percents = [to_decimal(value) for value in percentages]

    for user_id, percent in zip(user_ids, percents):
        if percent < 0 or percent > HUNDRED:
            raise LedgerValidationError(
                f"Percentage for '{user_id}' must be between 0 and 100: {percent}"
            )
    if abs(sum(percents) - HUNDRED) > PERCENT_TOLERANCE:
        raise LedgerValidationError(f"Percentages must add up to 100, got {sum(percents)}")

    splits: List[SplitBase] = []
    allocated = Decimal("0")
    for user_id, percent in zip(user_ids[:-1], percents[:-1]):
        share = round_money(total * percent / HUNDRED)
        allocated += share
        splits.append(SplitBase(user_id=user_id, amount=share, percentage=percent))

    last_share = total - allocated
    if last_share < 0:
        raise LedgerValidationError("Percentages allocate more than the expense amount")
    splits.append(SplitBase(user_id=user_ids[-1], amount=last_share, percentage=percents[-1]))
    return splits
