"""Auth API router.

Only a DEBUG-mode token endpoint lives here; production tokens come from the
upstream identity service that shares JWT_SECRET.
"""

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from config.settings import settings
from src.pm_common.errors import AppError
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.jwt_handler import create_access_token

router = APIRouter(prefix="/auth", tags=["auth"])


class DevTokenRequest(BaseModel):
    address: str = Field(min_length=1, max_length=128)


class DevTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


def _get_request_id(request: Request) -> str:
    """Read request_id injected by RequestLogMiddleware, fallback if absent."""
    return getattr(request.state, "request_id", "req_unknown")


@router.post("/dev-token", response_model=ApiResponse, summary="Issue a token (DEBUG only)")
async def dev_token(request: Request, body: DevTokenRequest) -> ApiResponse:
    if not settings.DEBUG:
        raise AppError(1004, "Dev tokens are disabled", 403)
    data = DevTokenResponse(
        access_token=create_access_token(body.address),
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
    )
    resp = success_response(data.model_dump())
    resp.request_id = _get_request_id(request)
    return resp
