"""Security utilities for JWT and password handling."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.config import settings
from app.models.admin import TokenType
from app.schemas.auth import TokenPayload

# Password hashing context
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Generate password hash."""
    return pwd_context.hash(password)


def _secret_for(token_type: TokenType) -> str:
    return settings.jwt_refresh_secret if token_type == TokenType.REFRESH else settings.jwt_secret


def _create_token(
    admin_id: str,
    email: str,
    role: str,
    token_type: TokenType,
    expires_delta: timedelta,
) -> str:
    to_encode = {
        "sub": str(admin_id),
        "email": email,
        "role": role,
        "type": token_type.value,
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(to_encode, _secret_for(token_type), algorithm=settings.jwt_algorithm)


def create_access_token(
    admin_id: str,
    email: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a short lived JWT access token."""
    return _create_token(
        admin_id,
        email,
        role,
        TokenType.ACCESS,
        expires_delta or timedelta(minutes=settings.jwt_expire_minutes),
    )


def create_refresh_token(
    admin_id: str,
    email: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a JWT refresh token, signed with its own secret."""
    return _create_token(
        admin_id,
        email,
        role,
        TokenType.REFRESH,
        expires_delta or timedelta(days=settings.jwt_refresh_expire_days),
    )


def decode_token(token: str, token_type: TokenType = TokenType.ACCESS) -> Optional[TokenPayload]:
    """Decode and validate a JWT. Expired, forged or wrong-type tokens yield None."""
    try:
        payload = jwt.decode(
            token,
            _secret_for(token_type),
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    if payload.get("type") != token_type.value or not payload.get("sub"):
        return None

    return TokenPayload(
        sub=str(payload["sub"]),
        email=payload.get("email", ""),
        role=payload.get("role", ""),
        type=payload["type"],
        exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
