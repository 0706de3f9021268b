from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response

from tally.api.deps import get_group_or_404
from tally.core.config import settings
from tally.db.mongo import get_db
from tally.models.group import Group
from tally.schemas.ledger import BalanceResponse, LedgerResponse, SettleUpResponse, TransferResponse
from tally.services.group_ledger_service import GroupLedgerService
from tally.services.ledger_service import check_conservation, conservation_drift
from tally.services.settlement_service import get_total_transfer_amount
from tally.utils.csv_export import export_filename, ledger_to_csv
from tally.utils.ledger_validation import LedgerValidationError

router = APIRouter()


def _bad_ledger(exc: LedgerValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=str(exc)
    )


@router.get("/{group_id}/ledger", response_model=LedgerResponse)
async def get_ledger(group: Group = Depends(get_group_or_404), db=Depends(get_db)):
    """Net balance of every member. Positive = gets back, negative = owes"""
    try:
        totals = await GroupLedgerService(db).get_member_totals(
            group, settings.SETTLEMENT_EPSILON
        )
    except LedgerValidationError as exc:
        raise _bad_ledger(exc)

    balances = [entry.to_net_balance() for entry in totals]
    return LedgerResponse(
        group_id=str(group.id),
        currency=group.currency,
        balances=[
            BalanceResponse(
                user_id=entry.participant.id,
                user_name=entry.participant.name,
                total_paid=entry.total_paid,
                total_owed=entry.total_owed,
                net=entry.net
            )
            for entry in totals
        ],
        total_net=conservation_drift(balances),
        is_balanced=check_conservation(balances, settings.SETTLEMENT_EPSILON)
    )


@router.get("/{group_id}/ledger/transfers", response_model=SettleUpResponse)
async def get_settle_up_plan(group: Group = Depends(get_group_or_404), db=Depends(get_db)):
    """Fewest payments that settle the group"""
    try:
        transfers, is_valid = await GroupLedgerService(db).plan_settle_up(
            group, settings.SETTLEMENT_EPSILON
        )
    except LedgerValidationError as exc:
        raise _bad_ledger(exc)

    return SettleUpResponse(
        group_id=str(group.id),
        currency=group.currency,
        transfers=[
            TransferResponse(
                from_user_id=transfer.from_user.id,
                from_user_name=transfer.from_user.name,
                to_user_id=transfer.to_user.id,
                to_user_name=transfer.to_user.name,
                amount=transfer.amount
            )
            for transfer in transfers
        ],
        total_amount=get_total_transfer_amount(transfers),
        is_valid=is_valid
    )


@router.get("/{group_id}/ledger/export")
async def export_ledger(group: Group = Depends(get_group_or_404), db=Depends(get_db)):
    """Download member balances as CSV"""
    try:
        totals = await GroupLedgerService(db).get_member_totals(
            group, settings.SETTLEMENT_EPSILON
        )
    except LedgerValidationError as exc:
        raise _bad_ledger(exc)

    return Response(
        content=ledger_to_csv(totals, group.currency),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(group.name)}"'}
    )
