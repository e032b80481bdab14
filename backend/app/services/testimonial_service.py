"""Client testimonials and their moderation."""

import re
from typing import Any, Dict, List, Optional

from fastapi import Depends
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.database import TESTIMONIALS, DocumentStore, get_store
from app.errors import ConflictError, NotFoundError
from app.models.content import TestimonialStatus
from app.schemas.content import TestimonialCreate, TestimonialUpdate
from app.utils.documents import to_object_id, utcnow
from app.utils.logging import get_logger

logger = get_logger("services.testimonial")

# Rows created before moderation existed have no status and stay visible.
PUBLIC_QUERY = {
    "$or": [
        {"status": TestimonialStatus.APPROVED.value},
        {"status": {"$exists": False}},
    ]
}


class TestimonialService:
    def __init__(self, store: DocumentStore):
        self.collection = store.collection(TESTIMONIALS)

    async def _ensure_unique(self, email: Optional[str], phone: Optional[str], exclude_id: Any = None) -> None:
        def scoped(query: Dict[str, Any]) -> Dict[str, Any]:
            if exclude_id is not None:
                query["_id"] = {"$ne": exclude_id}
            return query

        if email and await self.collection.find_one(scoped({"email": email}), {"_id": 1}):
            raise ConflictError("A testimonial with this email already exists")
        if phone and await self.collection.find_one(scoped({"phoneNumber": phone}), {"_id": 1}):
            raise ConflictError("A testimonial with this phone number already exists")

    async def _duplicate_conflict(self, email: Optional[str], phone: Optional[str], exclude_id: Any = None) -> ConflictError:
        """Name the field a unique index rejected after a concurrent write won the race."""
        try:
            await self._ensure_unique(email, phone, exclude_id)
        except ConflictError as e:
            return e
        return ConflictError("A testimonial with this email already exists")

    async def list_public(self) -> List[dict]:
        cursor = self.collection.find(PUBLIC_QUERY).sort([("createdAt", DESCENDING)])
        return await cursor.to_list(length=None)

    async def list_admin(self, status: Optional[str] = None, q: Optional[str] = None) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if status and status != "all":
            if status == TestimonialStatus.APPROVED.value:
                query.update(PUBLIC_QUERY)
            else:
                query["status"] = status
        if q and q.strip():
            pattern = {"$regex": re.escape(q.strip()), "$options": "i"}
            search = [{"fullName": pattern}, {"email": pattern}, {"review": pattern}]
            if "$or" in query:
                query = {"$and": [{"$or": query.pop("$or")}, {"$or": search}]}
            else:
                query["$or"] = search
        cursor = self.collection.find(query).sort([("createdAt", DESCENDING)])
        testimonials = await cursor.to_list(length=None)

        counts = {s.value: 0 for s in TestimonialStatus}
        for item in await self.collection.find({}, {"status": 1}).to_list(length=None):
            key = item.get("status") or TestimonialStatus.APPROVED.value
            counts[key] = counts.get(key, 0) + 1
        return {"testimonials": testimonials, "counts": counts}

    async def get(self, testimonial_id: Any) -> dict:
        item = await self.collection.find_one({"_id": to_object_id(testimonial_id, "Testimonial")})
        if not item:
            raise NotFoundError("Testimonial not found")
        return item

    async def create(self, payload: TestimonialCreate) -> dict:
        await self._ensure_unique(payload.email, payload.phone_number)
        now = utcnow()
        document = payload.to_document()
        document.update({
            "projectType": payload.project_type or None,
            "status": TestimonialStatus.PENDING.value,
            "createdAt": now,
            "updatedAt": now,
        })
        try:
            result = await self.collection.insert_one(document)
        except DuplicateKeyError:
            raise await self._duplicate_conflict(payload.email, payload.phone_number)
        document["_id"] = result.inserted_id
        logger.info("testimonial_created", testimonial_id=str(result.inserted_id))
        return document

    async def update(self, testimonial_id: Any, payload: TestimonialUpdate) -> dict:
        existing = await self.get(testimonial_id)
        fields = payload.to_document(exclude_unset=True)
        if fields.get("phoneNumber") == "":
            fields["phoneNumber"] = None
        await self._ensure_unique(fields.get("email"), fields.get("phoneNumber"), exclude_id=existing["_id"])
        fields["updatedAt"] = utcnow()
        try:
            item = await self.collection.find_one_and_update(
                {"_id": existing["_id"]},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            raise await self._duplicate_conflict(fields.get("email"), fields.get("phoneNumber"), existing["_id"])
        logger.info("testimonial_updated", testimonial_id=str(existing["_id"]))
        return item

    async def delete(self, testimonial_id: Any) -> dict:
        item = await self.get(testimonial_id)
        await self.collection.delete_one({"_id": item["_id"]})
        logger.info("testimonial_deleted", testimonial_id=str(item["_id"]))
        return item

    async def moderate(self, testimonial_id: Any, status: TestimonialStatus, admin: dict) -> dict:
        item = await self.get(testimonial_id)
        now = utcnow()
        fields: Dict[str, Any] = {"status": TestimonialStatus(status).value, "updatedAt": now}
        if status == TestimonialStatus.APPROVED:
            fields["approvedAt"] = now
            fields["approvedBy"] = admin.get("email")
        else:
            fields["rejectedAt"] = now
            fields["rejectedBy"] = admin.get("email")
        item = await self.collection.find_one_and_update(
            {"_id": item["_id"]},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        logger.info(
            "testimonial_moderated",
            testimonial_id=str(item["_id"]),
            status=fields["status"],
            admin=admin.get("email"),
        )
        return item


def get_testimonial_service(store: DocumentStore = Depends(get_store)) -> TestimonialService:
    return TestimonialService(store)
