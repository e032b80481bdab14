"""Admin account model."""

from enum import Enum


class AdminRole(str, Enum):
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"
