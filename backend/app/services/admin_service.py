"""Admin accounts."""

from typing import Any, Optional

from fastapi import Depends
from pymongo.errors import DuplicateKeyError

from app.database import ADMINS, DocumentStore, get_store
from app.errors import AuthError, ConflictError, NotFoundError, ValidationError
from app.models.admin import AdminRole
from app.schemas.common import is_valid_email, normalize_email
from app.utils.documents import to_object_id, utcnow
from app.utils.logging import get_logger
from app.utils.security import get_password_hash, verify_password

logger = get_logger("services.admin")

MIN_PASSWORD_LENGTH = 8


def public_admin(admin: dict) -> dict:
    return {
        "_id": admin["_id"],
        "email": admin.get("email"),
        "name": admin.get("name"),
        "role": admin.get("role", AdminRole.ADMIN.value),
        "lastLoginAt": admin.get("lastLoginAt"),
    }


class AdminService:
    def __init__(self, store: DocumentStore):
        self.collection = store.collection(ADMINS)

    async def get(self, admin_id: Any) -> Optional[dict]:
        try:
            oid = to_object_id(admin_id, "Admin")
        except NotFoundError:
            return None
        return await self.collection.find_one({"_id": oid})

    async def authenticate(self, email: str, password: str) -> dict:
        admin = await self.collection.find_one({"email": normalize_email(email)})
        if not admin or not admin.get("password") or not verify_password(password, admin["password"]):
            logger.info("admin_login_failed", email=normalize_email(email))
            raise AuthError("Invalid email or password")
        if admin.get("isActive") is False:
            raise AuthError("Account is disabled")

        await self.collection.update_one({"_id": admin["_id"]}, {"$set": {"lastLoginAt": utcnow()}})
        logger.info("admin_login_succeeded", admin_id=str(admin["_id"]))
        return admin

    async def create(
        self,
        email: str,
        password: str,
        name: str = "",
        role: AdminRole = AdminRole.ADMIN,
    ) -> dict:
        email = normalize_email(email)
        if not is_valid_email(email):
            raise ValidationError("Please provide a valid email address")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if await self.collection.find_one({"email": email}, {"_id": 1}):
            raise ConflictError("An admin with this email already exists")

        now = utcnow()
        document = {
            "email": email,
            "password": get_password_hash(password),
            "name": name,
            "role": AdminRole(role).value,
            "isActive": True,
            "createdAt": now,
            "updatedAt": now,
        }
        try:
            result = await self.collection.insert_one(document)
        except DuplicateKeyError:
            raise ConflictError("An admin with this email already exists")
        document["_id"] = result.inserted_id
        logger.info("admin_created", admin_id=str(result.inserted_id), email=email)
        return document


def get_admin_service(store: DocumentStore = Depends(get_store)) -> AdminService:
    return AdminService(store)
