from typing import List, Sequence

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from tally.core.config import settings
from tally.models.expense import Expense, ExpenseSplit
from tally.schemas.expense import ExpenseCreate, SplitBase
from tally.utils.money import to_cents


class ExpenseRepository:
    """Expense database operations. Amounts are stored as integer cents."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["expenses"]

    async def create_expense(
        self,
        group_id: str,
        expense_data: ExpenseCreate,
        splits: Sequence[SplitBase]
    ) -> Expense:
        """Insert an expense whose splits were already built and validated."""
        expense = Expense(
            group_id=group_id,
            title=expense_data.title,
            amount_cents=to_cents(expense_data.amount),
            currency=expense_data.currency or settings.DEFAULT_CURRENCY,
            notes=expense_data.notes,
            paid_by_id=expense_data.paid_by_id,
            split_type=expense_data.split_type,
            splits=[
                ExpenseSplit(
                    user_id=split.user_id,
                    amount_cents=to_cents(split.amount),
                    percentage=float(split.percentage) if split.percentage is not None else None
                )
                for split in splits
            ],
        )
        if expense_data.date is not None:
            expense.date = expense_data.date

        result = await self.collection.insert_one(expense.to_document())
        expense.id = result.inserted_id
        return expense

    async def list_expenses(self, group_id: str) -> List[Expense]:
        """All expenses of a group, newest first."""
        cursor = self.collection.find({
            "group_id": ObjectId(group_id),
            "is_deleted": False
        }).sort("date", -1)
        docs = await cursor.to_list(None)
        return [Expense(**doc) for doc in docs]
