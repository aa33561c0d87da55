"""FastAPI dependency: get_caller_address.

Usage in any protected router:
    from src.pm_gateway.auth.dependencies import get_caller_address

    @router.post("/protected")
    async def protected(caller: str = Depends(get_caller_address)):
        ...

Authorization (owner-only, oracle-only) is decided by the engine against the
market's own fields, not here.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.pm_common.errors import InvalidCredentialsError
from src.pm_gateway.auth.jwt_handler import decode_token

# tokenUrl tells Swagger UI where to get a token (used for the "Authorize" button)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/dev-token")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_caller_address(token: str = Depends(oauth2_scheme)) -> str:
    """Return the address carried in the Bearer token's `sub` claim."""
    try:
        payload = decode_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    address: str | None = payload.get("sub")
    if not address:
        raise _CREDENTIALS_EXCEPTION
    return address
