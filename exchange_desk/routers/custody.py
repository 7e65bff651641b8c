"""
Custody router — treasurer-to-cashier cash hand-offs.

Endpoints:
  POST /custody                       — [Treasurer] Hand cash to a cashier
  GET  /custody                       — Custody the caller gave and received
  GET  /custody/all                   — [Manager] Every custody record
  GET  /custody/summary               — [Manager] Counts and active totals
  GET  /custody/cashiers              — Users with the cashier role
  GET  /custody/treasurers            — Users with the treasurer role
  GET  /custody/holdings/{cashier_id} — Cash a cashier holds (self, treasurers, managers)
  GET  /custody/{id}                  — One record (parties and managers)
  POST /custody/{id}/approve          — [Cashier] Accept
  POST /custody/{id}/reject           — [Cashier] Refuse, cash goes back
  POST /custody/{id}/return           — Cashier or treasurer returns the cash

Approve, reject and return answer 409 invalid_transition when the record
has already moved on.
"""

import uuid
from decimal import Decimal

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_desk.database import get_db
from exchange_desk.dependencies import get_current_user, require_manager, require_roles
from exchange_desk.models.user import User
from exchange_desk.schemas.custody import (
    CustodyGiveRequest,
    CustodyListResponse,
    CustodyRejectRequest,
    CustodyResponse,
    CustodySummaryResponse,
)
from exchange_desk.schemas.user import UserSummary
from exchange_desk.services import custody_service
from exchange_desk.services.custody_totals import get_custody_summary

router = APIRouter()


@router.post(
    "",
    response_model=CustodyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="[Treasurer] Give cash custody",
)
async def give_custody(
    request: CustodyGiveRequest,
    treasurer: User = Depends(require_roles("treasurer")),
    db: AsyncSession = Depends(get_db),
):
    """
    Hand ``amount`` from a wallet to a cashier. The wallet is debited now;
    the cashier gets a notification to approve or reject.
    """
    return await custody_service.give_cash_custody(
        db,
        treasurer=treasurer,
        cashier_id=request.cashier_id,
        wallet_id=request.wallet_id,
        currency_code=request.currency_code,
        amount=request.amount,
        notes=request.notes,
        previous_custody_id=request.previous_custody_id,
    )


@router.get("", response_model=CustodyListResponse, summary="My custody")
async def list_my_custody(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await custody_service.list_custody(db, user)


@router.get("/all", response_model=list[CustodyResponse], summary="[Manager] All custody")
async def list_all_custody(
    manager: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    return await custody_service.list_all_custody(db)


@router.get("/summary", response_model=CustodySummaryResponse, summary="[Manager] Custody summary")
async def custody_summary(
    manager: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    return get_custody_summary(await custody_service.list_all_custody(db))


@router.get("/cashiers", response_model=list[UserSummary], summary="List cashiers")
async def list_cashiers(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await custody_service.list_cashiers(db)


@router.get("/treasurers", response_model=list[UserSummary], summary="List treasurers")
async def list_treasurers(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await custody_service.list_treasurers(db)


@router.get(
    "/holdings/{cashier_id}",
    response_model=dict[str, Decimal],
    summary="Cash a cashier holds",
)
async def cashier_holdings(
    cashier_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await custody_service.get_cashier_holdings(db, cashier_id, user)


@router.get("/{custody_id}", response_model=CustodyResponse, summary="Get a custody record")
async def get_custody(
    custody_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await custody_service.get_custody(db, custody_id, user)


@router.post("/{custody_id}/approve", response_model=CustodyResponse, summary="[Cashier] Approve custody")
async def approve_custody(
    custody_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await custody_service.approve_custody(db, custody_id, user)


@router.post("/{custody_id}/reject", response_model=CustodyResponse, summary="[Cashier] Reject custody")
async def reject_custody(
    custody_id: uuid.UUID,
    request: CustodyRejectRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await custody_service.reject_custody(db, custody_id, user, request.reason)


@router.post("/{custody_id}/return", response_model=CustodyResponse, summary="Return custody")
async def return_custody(
    custody_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await custody_service.mark_custody_returned(db, custody_id, user)
