"""Oracle callback endpoints.

The oracle authenticates like any other caller; its token's address must be
the market's designated oracle, which the engine checks.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_caller_address
from src.pm_market.application.service import MarketApplicationService, get_market_service
from src.pm_oracle.application.schemas import DisputedCallback, SettledAck, SettledCallback

router = APIRouter(prefix="/oracle", tags=["oracle"])


@router.post("/markets/{market_id}/price-settled")
async def price_settled(
    market_id: str,
    body: SettledCallback,
    request: Request,
    sender: Annotated[str, Depends(get_caller_address)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    svc: Annotated[MarketApplicationService, Depends(get_market_service)],
) -> ApiResponse:
    applied = await svc.on_settled(
        db,
        market_id,
        sender,
        body.identifier_bytes,
        body.timestamp,
        body.ancillary_bytes,
        body.price,
    )
    resp = success_response(SettledAck(market_id=market_id, applied=applied).model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    if not applied:
        resp.message = "stale round ignored"
    return resp


@router.post("/markets/{market_id}/price-disputed")
async def price_disputed(
    market_id: str,
    body: DisputedCallback,
    request: Request,
    sender: Annotated[str, Depends(get_caller_address)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    svc: Annotated[MarketApplicationService, Depends(get_market_service)],
) -> ApiResponse:
    result = await svc.on_disputed(
        db,
        market_id,
        sender,
        body.identifier_bytes,
        body.timestamp,
        body.ancillary_bytes,
        body.refund,
    )
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
