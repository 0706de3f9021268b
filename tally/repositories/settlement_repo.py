from typing import List

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from tally.core.config import settings
from tally.models.settlement import Settlement
from tally.schemas.settlement import SettlementCreate
from tally.utils.money import to_cents


class SettlementRepository:
    """Recorded settlements (payments made outside the app)."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["settlements"]

    async def create_settlement(self, group_id: str, settlement_data: SettlementCreate) -> Settlement:
        settlement = Settlement(
            group_id=group_id,
            from_user_id=settlement_data.from_user_id,
            to_user_id=settlement_data.to_user_id,
            amount_cents=to_cents(settlement_data.amount),
            currency=settlement_data.currency or settings.DEFAULT_CURRENCY,
            notes=settlement_data.notes,
        )
        if settlement_data.date is not None:
            settlement.date = settlement_data.date

        result = await self.collection.insert_one(settlement.to_document())
        settlement.id = result.inserted_id
        return settlement

    async def list_settlements(self, group_id: str) -> List[Settlement]:
        """All settlements of a group, newest first."""
        cursor = self.collection.find({"group_id": ObjectId(group_id)}).sort("date", -1)
        docs = await cursor.to_list(None)
        return [Settlement(**doc) for doc in docs]
