"""pm_market REST endpoints.

POST /markets                              — create (caller becomes owner)
GET  /markets/{market_id}                  — full detail incl. phase
POST /markets/{market_id}/initialize       — owner opens betting + first oracle request
POST /markets/{market_id}/bets             — stake on YES / NO
POST /markets/{market_id}/claim            — one-shot payout after settlement
GET  /markets/{market_id}/positions/{addr} — a participant's stakes
GET  /markets/{market_id}/events           — event journal, newest first
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_caller_address
from src.pm_market.application.schemas import (
    BetRequest,
    CreateMarketRequest,
    InitializeRequest,
)
from src.pm_market.application.service import MarketApplicationService, get_market_service

router = APIRouter(prefix="/markets", tags=["markets"])

Caller = Annotated[str, Depends(get_caller_address)]
Db = Annotated[AsyncSession, Depends(get_db_session)]
Service = Annotated[MarketApplicationService, Depends(get_market_service)]


def _wrap(request: Request, data: object) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_market(
    body: CreateMarketRequest, request: Request, caller: Caller, db: Db, svc: Service
) -> ApiResponse:
    result = await svc.create_market(db, caller, body)
    return _wrap(request, result.model_dump())


@router.get("/{market_id}")
async def get_market(
    market_id: str, request: Request, caller: Caller, db: Db, svc: Service
) -> ApiResponse:
    result = await svc.get_market(db, market_id)
    return _wrap(request, result.model_dump())


@router.post("/{market_id}/initialize")
async def initialize_market(
    market_id: str,
    body: InitializeRequest,
    request: Request,
    caller: Caller,
    db: Db,
    svc: Service,
) -> ApiResponse:
    result = await svc.initialize(db, market_id, caller, body.betting_duration)
    return _wrap(request, result.model_dump())


@router.post("/{market_id}/bets", status_code=status.HTTP_201_CREATED)
async def place_bet(
    market_id: str,
    body: BetRequest,
    request: Request,
    caller: Caller,
    db: Db,
    svc: Service,
) -> ApiResponse:
    result = await svc.place_bet(db, market_id, caller, body.side, body.amount)
    return _wrap(request, result.model_dump())


@router.post("/{market_id}/claim")
async def claim_winnings(
    market_id: str, request: Request, caller: Caller, db: Db, svc: Service
) -> ApiResponse:
    result = await svc.claim(db, market_id, caller)
    return _wrap(request, result.model_dump())


@router.get("/{market_id}/positions/{address}")
async def get_position(
    market_id: str,
    address: str,
    request: Request,
    caller: Caller,
    db: Db,
    svc: Service,
) -> ApiResponse:
    result = await svc.get_position(db, market_id, address)
    return _wrap(request, result.model_dump())


@router.get("/{market_id}/events")
async def list_events(
    market_id: str,
    request: Request,
    caller: Caller,
    db: Db,
    svc: Service,
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    result = await svc.list_events(db, market_id, limit)
    return _wrap(request, result.model_dump())
