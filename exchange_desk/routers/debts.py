"""
Debts router.

Endpoints:
  POST   /debts            — Record a debt (applies it to the wallet)
  GET    /debts            — Owed and receivable debts
  GET    /debts/summary    — Unpaid totals per currency
  POST   /debts/{id}/pay   — Settle a debt
  DELETE /debts/{id}       — Delete a debt (reverses an unpaid one)
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_desk.database import get_db
from exchange_desk.dependencies import require_roles
from exchange_desk.models.user import User
from exchange_desk.schemas.debt import (
    DebtCreateRequest,
    DebtListResponse,
    DebtResponse,
    DebtSummaryResponse,
)
from exchange_desk.services import debt_service

router = APIRouter()

require_debt_keeper = require_roles("manager", "treasurer", "cashier")


@router.post("", response_model=DebtResponse, status_code=status.HTTP_201_CREATED, summary="Record a debt")
async def create_debt(
    request: DebtCreateRequest,
    user: User = Depends(require_debt_keeper),
    db: AsyncSession = Depends(get_db),
):
    return await debt_service.create_debt(
        db,
        user=user,
        person_name=request.person_name,
        wallet_id=request.wallet_id,
        currency_code=request.currency_code,
        amount=request.amount,
        notes=request.notes,
        is_owed=request.is_owed,
    )


@router.get("", response_model=DebtListResponse, summary="List debts")
async def list_debts(
    user: User = Depends(require_debt_keeper),
    db: AsyncSession = Depends(get_db),
):
    return await debt_service.list_debts(db, user)


@router.get("/summary", response_model=DebtSummaryResponse, summary="Debt summary")
async def debt_summary(
    user: User = Depends(require_debt_keeper),
    db: AsyncSession = Depends(get_db),
):
    return await debt_service.get_debt_summary(db, user)


@router.post("/{debt_id}/pay", response_model=DebtResponse, summary="Mark a debt paid")
async def pay_debt(
    debt_id: uuid.UUID,
    user: User = Depends(require_debt_keeper),
    db: AsyncSession = Depends(get_db),
):
    return await debt_service.mark_debt_as_paid(db, debt_id, user)


@router.delete("/{debt_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a debt")
async def delete_debt(
    debt_id: uuid.UUID,
    user: User = Depends(require_debt_keeper),
    db: AsyncSession = Depends(get_db),
):
    await debt_service.delete_debt(db, debt_id, user)
