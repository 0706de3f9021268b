from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from tally.api.deps import get_group_or_404
from tally.core.config import settings
from tally.db.mongo import get_db
from tally.models.expense import Expense, SplitType
from tally.models.group import Group
from tally.repositories.expense_repo import ExpenseRepository
from tally.schemas.expense import ExpenseCreate, ExpenseResponse, SplitResponse
from tally.utils.ledger_validation import (
    LedgerValidationError,
    validate_currency,
    validate_expense_splits,
    validate_members,
)
from tally.utils.money import from_cents
from tally.utils.splits import build_splits

router = APIRouter()


def _expense_response(expense: Expense) -> ExpenseResponse:
    return ExpenseResponse(
        id=str(expense.id),
        group_id=str(expense.group_id),
        title=expense.title,
        amount=from_cents(expense.amount_cents),
        currency=expense.currency,
        date=expense.date,
        notes=expense.notes,
        paid_by_id=expense.paid_by_id,
        split_type=expense.split_type,
        splits=[
            SplitResponse(
                user_id=split.user_id,
                amount=from_cents(split.amount_cents),
                percentage=split.percentage,
                is_paid=split.is_paid
            )
            for split in expense.splits
        ],
        created_at=expense.created_at
    )


@router.get("/{group_id}/expenses", response_model=List[ExpenseResponse])
async def list_expenses(group: Group = Depends(get_group_or_404), db=Depends(get_db)):
    """List a group's expenses, newest first"""
    expenses = await ExpenseRepository(db).list_expenses(str(group.id))
    return [_expense_response(expense) for expense in expenses]


@router.post("/{group_id}/expenses", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    expense_in: ExpenseCreate,
    group: Group = Depends(get_group_or_404),
    db=Depends(get_db)
):
    """Record an expense; split amounts are computed from the split type"""
    user_ids = [split.user_id for split in expense_in.splits]
    if expense_in.split_type == SplitType.PERCENTAGE:
        values = [split.percentage for split in expense_in.splits]
    elif expense_in.split_type == SplitType.FIXED:
        values = [split.amount for split in expense_in.splits]
    else:
        values = None

    try:
        currency = validate_currency(group.currency, expense_in.currency)
        validate_members(group.member_ids(), [expense_in.paid_by_id, *user_ids])
        splits = build_splits(expense_in.split_type, expense_in.amount, user_ids, values)
        validate_expense_splits(expense_in.amount, splits, settings.SPLIT_TOLERANCE)
    except LedgerValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc)
        )

    expense_in = expense_in.model_copy(update={"currency": currency})
    expense = await ExpenseRepository(db).create_expense(str(group.id), expense_in, splits)
    return _expense_response(expense)
