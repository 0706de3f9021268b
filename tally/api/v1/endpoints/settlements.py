from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from tally.api.deps import get_group_or_404
from tally.db.mongo import get_db
from tally.models.group import Group
from tally.models.settlement import Settlement
from tally.repositories.settlement_repo import SettlementRepository
from tally.schemas.settlement import SettlementCreate, SettlementResponse
from tally.utils.ledger_validation import (
    LedgerValidationError,
    validate_currency,
    validate_members,
    validate_settlement,
)
from tally.utils.money import from_cents

router = APIRouter()


def _settlement_response(settlement: Settlement) -> SettlementResponse:
    return SettlementResponse(
        id=str(settlement.id),
        group_id=str(settlement.group_id),
        from_user_id=settlement.from_user_id,
        to_user_id=settlement.to_user_id,
        amount=from_cents(settlement.amount_cents),
        currency=settlement.currency,
        date=settlement.date,
        notes=settlement.notes,
        created_at=settlement.created_at
    )


@router.get("/{group_id}/settlements", response_model=List[SettlementResponse])
async def list_settlements(group: Group = Depends(get_group_or_404), db=Depends(get_db)):
    settlements = await SettlementRepository(db).list_settlements(str(group.id))
    return [_settlement_response(settlement) for settlement in settlements]


@router.post("/{group_id}/settlements", response_model=SettlementResponse, status_code=status.HTTP_201_CREATED)
async def create_settlement(
    settlement_in: SettlementCreate,
    group: Group = Depends(get_group_or_404),
    db=Depends(get_db)
):
    """Record a payment made between two members (e.g. a suggested transfer)"""
    try:
        currency = validate_currency(group.currency, settlement_in.currency)
        validate_members(group.member_ids(), [settlement_in.from_user_id, settlement_in.to_user_id])
        validate_settlement(settlement_in.from_user_id, settlement_in.to_user_id, settlement_in.amount)
    except LedgerValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc)
        )

    settlement_in = settlement_in.model_copy(update={"currency": currency})
    settlement = await SettlementRepository(db).create_settlement(str(group.id), settlement_in)
    return _settlement_response(settlement)
