# src/pm_clearing/api/collateral_router.py
"""Collateral REST API.

Bettors approve a market's custody address as spender before staking; the
market pulls stakes with transfer_from. The faucet only exists for local
runs (DEBUG with the in-memory backend).
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_clearing.application.collateral_schemas import (
    ApproveRequest,
    BalanceResponse,
    FaucetRequest,
)
from src.pm_clearing.infrastructure.assets import memory_asset, resolve_asset
from src.pm_common.database import get_db_session, session_scope
from src.pm_common.errors import AppError
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_caller_address

router = APIRouter(prefix="/collateral", tags=["collateral"])


async def _balance(asset_address: str, holder: str, spender: str | None) -> BalanceResponse:
    asset = resolve_asset(asset_address)
    return BalanceResponse(
        asset=asset_address,
        holder=holder,
        balance=await asset.balance_of(holder),
        spender=spender,
        allowance=await asset.allowance(holder, spender) if spender else None,
    )


@router.get("/{asset}/balance")
async def get_balance(
    asset: str,
    caller: Annotated[str, Depends(get_caller_address)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    holder: str | None = Query(None, description="Defaults to the caller"),
    spender: str | None = Query(None, description="Also report allowance to this spender"),
) -> ApiResponse:
    with session_scope(db):
        data = await _balance(asset, holder or caller, spender)
    return success_response(data.model_dump())


@router.post("/{asset}/approve")
async def approve(
    asset: str,
    body: ApproveRequest,
    caller: Annotated[str, Depends(get_caller_address)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    with session_scope(db):
        try:
            await resolve_asset(asset).approve(caller, body.spender, body.amount)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        data = await _balance(asset, caller, body.spender)
    return success_response(data.model_dump())


@router.post("/{asset}/faucet")
async def faucet(
    asset: str,
    body: FaucetRequest,
    caller: Annotated[str, Depends(get_caller_address)],
) -> ApiResponse:
    if not (settings.DEBUG and settings.COLLATERAL_BACKEND == "memory"):
        raise AppError(2004, "Faucet is only available in DEBUG with the memory backend", 403)
    token = memory_asset(asset)
    token.mint(caller, body.amount)
    return success_response(
        BalanceResponse(
            asset=asset, holder=caller, balance=await token.balance_of(caller)
        ).model_dump()
    )
