"""Admin authentication endpoints."""

from fastapi import APIRouter, Depends, Request, Response

from app.config import settings
from app.errors import AuthError
from app.middleware.auth import ACCESS_COOKIE, REFRESH_COOKIE, require_admin
from app.models.admin import TokenType
from app.schemas.auth import LoginRequest, RefreshRequest
from app.services.admin_service import AdminService, get_admin_service, public_admin
from app.utils.documents import serialize, success
from app.utils.request_parsing import ParsedRequest, parse_request, validate_model
from app.utils.security import create_access_token, create_refresh_token, decode_token

router = APIRouter()


def _set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    common = {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "none" if settings.is_production else "lax",
        "path": "/",
    }
    response.set_cookie(ACCESS_COOKIE, access_token, max_age=settings.jwt_expire_minutes * 60, **common)
    response.set_cookie(
        REFRESH_COOKIE,
        refresh_token,
        max_age=settings.jwt_refresh_expire_days * 24 * 60 * 60,
        **common,
    )


def _issue_tokens(admin: dict) -> dict:
    admin_id = str(admin["_id"])
    role = admin.get("role", "admin")
    return {
        "accessToken": create_access_token(admin_id, admin["email"], role),
        "refreshToken": create_refresh_token(admin_id, admin["email"], role),
        "tokenType": "bearer",
        "expiresIn": settings.jwt_expire_minutes * 60,
    }


@router.post("/login")
async def login(
    response: Response,
    parsed: ParsedRequest = Depends(parse_request),
    admins: AdminService = Depends(get_admin_service),
) -> dict:
    """Authenticate an admin and hand out an access/refresh token pair."""
    credentials = validate_model(LoginRequest, parsed.data)
    admin = await admins.authenticate(credentials.email, credentials.password)
    tokens = _issue_tokens(admin)
    _set_auth_cookies(response, tokens["accessToken"], tokens["refreshToken"])
    return success({**tokens, "admin": serialize(public_admin(admin))}, "Login successful")


@router.post("/refresh")
async def refresh(
    request: Request,
    response: Response,
    parsed: ParsedRequest = Depends(parse_request),
    admins: AdminService = Depends(get_admin_service),
) -> dict:
    """Exchange a refresh token (body or cookie) for a new token pair."""
    body = validate_model(RefreshRequest, parsed.data)
    token = body.refresh_token or request.cookies.get(REFRESH_COOKIE)
    if not token:
        raise AuthError("Refresh token missing")

    token_data = decode_token(token, TokenType.REFRESH)
    if token_data is None:
        raise AuthError("Refresh token invalid or expired")

    admin = await admins.get(token_data.sub)
    if admin is None or admin.get("isActive") is False:
        raise AuthError("Admin not found")

    tokens = _issue_tokens(admin)
    _set_auth_cookies(response, tokens["accessToken"], tokens["refreshToken"])
    return success(tokens, "Token refreshed")


@router.post("/logout")
async def logout(response: Response) -> dict:
    response.delete_cookie(ACCESS_COOKIE, path="/")
    response.delete_cookie(REFRESH_COOKIE, path="/")
    return success(message="Logged out")


@router.get("/me")
async def me(admin: dict = Depends(require_admin)) -> dict:
    return success(serialize(public_admin(admin)))
