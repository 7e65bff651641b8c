"""
Currency-pair analysis router. Every call recomputes from the trades.

Endpoints:
  GET /analysis/pairs                     — All trades (custody_only to narrow)
  GET /analysis/wallets/{wallet_id}/pairs — Trades through one wallet
  GET /analysis/custody/{custody_id}/pairs — Trades against one custody
"""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_desk.database import get_db
from exchange_desk.dependencies import get_current_user
from exchange_desk.models.user import User
from exchange_desk.schemas.analysis import PairsAnalysisResponse
from exchange_desk.services import analysis

router = APIRouter()


def _as_response(result: dict) -> PairsAnalysisResponse:
    return PairsAnalysisResponse(
        wallet_id=result.get("wallet_id"),
        custody_id=result.get("custody_id"),
        transaction_count=result["transaction_count"],
        pairs=analysis.format_currency_pairs_for_table(result["currency_pairs"]),
        last_analyzed=result["last_analyzed"],
    )


@router.get("/pairs", response_model=PairsAnalysisResponse, summary="Overall pair analysis")
async def overall_pairs(
    custody_only: bool = Query(False),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return _as_response(await analysis.get_overall_pairs_analysis(db, custody_only=custody_only))


@router.get("/wallets/{wallet_id}/pairs", response_model=PairsAnalysisResponse, summary="Wallet pair analysis")
async def wallet_pairs(
    wallet_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return _as_response(await analysis.get_wallet_pairs_analysis(db, wallet_id))


@router.get("/custody/{custody_id}/pairs", response_model=PairsAnalysisResponse, summary="Custody pair analysis")
async def custody_pairs(
    custody_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return _as_response(await analysis.get_custody_pairs_analysis(db, custody_id))
