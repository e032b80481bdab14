"""Authentication and authorization middleware."""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.models.admin import TokenType
from app.services.admin_service import AdminService, get_admin_service
from app.utils.security import decode_token

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_admin(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    admins: AdminService = Depends(get_admin_service),
) -> dict:
    """Resolve the calling admin from the bearer header, falling back to the cookie."""
    token = credentials.credentials if credentials else request.cookies.get(ACCESS_COOKIE)
    if not token:
        raise _unauthorized("Not authorized, no token provided")

    token_data = decode_token(token, TokenType.ACCESS)
    if token_data is None:
        raise _unauthorized("Not authorized, token invalid or expired")

    admin = await admins.get(token_data.sub)
    if admin is None:
        raise _unauthorized("Not authorized, admin not found")
    if admin.get("isActive") is False:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin account is disabled",
        )
    return admin
