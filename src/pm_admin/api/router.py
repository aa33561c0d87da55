# src/pm_admin/api/router.py
"""Admin REST API — owner-only market controls, stats and invariant checks."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_admin.application.service import AdminService
from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_caller_address

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


def get_admin_service() -> AdminService:
    return _service


Caller = Annotated[str, Depends(get_caller_address)]
Db = Annotated[AsyncSession, Depends(get_db_session)]
Service = Annotated[AdminService, Depends(get_admin_service)]


class FeeRequest(BaseModel):
    fee_bps: int


class TreasuryRequest(BaseModel):
    treasury: str


class OracleParamsRequest(BaseModel):
    proposer_reward: int | None = Field(None, ge=0)
    liveness: int | None = Field(None, gt=0)
    proposer_bond: int | None = Field(None, ge=0)


class RescueRequest(BaseModel):
    asset: str
    recipient: str
    amount: int = Field(gt=0)


def _wrap(request: Request, data: object) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/markets/{market_id}/fee")
async def set_fee(
    market_id: str, body: FeeRequest, request: Request, caller: Caller, db: Db, svc: Service
) -> ApiResponse:
    result = await svc.set_fee_bps(db, market_id, caller, body.fee_bps)
    return _wrap(request, result.model_dump())


@router.post("/markets/{market_id}/treasury")
async def set_treasury(
    market_id: str,
    body: TreasuryRequest,
    request: Request,
    caller: Caller,
    db: Db,
    svc: Service,
) -> ApiResponse:
    result = await svc.set_treasury(db, market_id, caller, body.treasury)
    return _wrap(request, result.model_dump())


@router.post("/markets/{market_id}/pause")
async def pause_market(
    market_id: str, request: Request, caller: Caller, db: Db, svc: Service
) -> ApiResponse:
    result = await svc.pause(db, market_id, caller)
    return _wrap(request, result.model_dump())


@router.post("/markets/{market_id}/unpause")
async def unpause_market(
    market_id: str, request: Request, caller: Caller, db: Db, svc: Service
) -> ApiResponse:
    result = await svc.unpause(db, market_id, caller)
    return _wrap(request, result.model_dump())


@router.post("/markets/{market_id}/oracle-params")
async def set_oracle_params(
    market_id: str,
    body: OracleParamsRequest,
    request: Request,
    caller: Caller,
    db: Db,
    svc: Service,
) -> ApiResponse:
    result = await svc.set_oracle_params(
        db,
        market_id,
        caller,
        proposer_reward=body.proposer_reward,
        liveness=body.liveness,
        proposer_bond=body.proposer_bond,
    )
    return _wrap(request, result.model_dump())


@router.post("/markets/{market_id}/rescue")
async def rescue_tokens(
    market_id: str,
    body: RescueRequest,
    request: Request,
    caller: Caller,
    db: Db,
    svc: Service,
) -> ApiResponse:
    result = await svc.rescue_tokens(
        db, market_id, caller, body.asset, body.recipient, body.amount
    )
    return _wrap(request, result)


@router.get("/markets/{market_id}/stats")
async def get_market_stats(
    market_id: str, request: Request, caller: Caller, db: Db, svc: Service
) -> ApiResponse:
    return _wrap(request, await svc.get_market_stats(db, market_id))


@router.get("/markets/{market_id}/invariants")
async def verify_invariants(
    market_id: str, request: Request, caller: Caller, db: Db, svc: Service
) -> ApiResponse:
    return _wrap(request, await svc.verify_invariants(db, market_id))
