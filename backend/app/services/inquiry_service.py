"""Inquiry funnel and the admin views over it."""

import csv
import io
import math
import re
from dataclasses import dataclass
from datetime import datetime, time, timezone
from typing import Any, Dict, List, Optional, Tuple

from fastapi import Depends
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from app.database import INQUIRIES, DocumentStore, get_store
from app.errors import ConflictError, NotFoundError, ValidationError
from app.models.inquiry import (
    InquiryStatus,
    SelectedPath,
    current_status,
    ensure_status_fits,
    ensure_transition,
    is_path_locked,
)
from app.schemas.inquiry import ConsultationDetails, InquiryContext, InquiryIdentity
from app.utils.documents import to_object_id, utcnow
from app.utils.logging import get_logger

logger = get_logger("services.inquiry")

SORTABLE_FIELDS = {"createdAt", "updatedAt", "lastName", "email", "status", "paidAt", "submittedAt"}

CSV_HEADERS = [
    "ID",
    "Created At",
    "Client Name",
    "Client Type",
    "Email",
    "Phone",
    "Address",
    "Services",
    "Budget",
    "Timeline",
    "Surface",
    "Status",
    "Payment Status",
    "Invoice Status",
    "Stripe Customer ID",
    "Stripe Invoice ID",
    "Submitted At",
    "Paid At",
    "Billing Collected At",
]


@dataclass
class InquiryFilters:
    q: Optional[str] = None
    status: Optional[str] = None
    client_type: Optional[str] = None
    service: Optional[str] = None
    payment_status: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    sort: str = "createdAt"
    order: str = "desc"


def _parse_day(value: str, label: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Invalid {label} date: {value}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def build_query(filters: InquiryFilters) -> Dict[str, Any]:
    query: Dict[str, Any] = {}

    if filters.q:
        pattern = {"$regex": re.escape(filters.q.strip()), "$options": "i"}
        query["$or"] = [
            {"firstName": pattern},
            {"lastName": pattern},
            {"email": pattern},
            {"phone": pattern},
        ]
    if filters.status:
        query["status"] = filters.status
    if filters.client_type:
        query["clientType"] = filters.client_type
    if filters.service:
        query["selectedServices"] = {"$in": [filters.service]}
    if filters.payment_status:
        if filters.payment_status == "none":
            query["paymentStatus"] = {"$exists": False}
        else:
            query["paymentStatus"] = filters.payment_status

    created: Dict[str, datetime] = {}
    if filters.date_from:
        created["$gte"] = _parse_day(filters.date_from, "start")
    if filters.date_to:
        end = _parse_day(filters.date_to, "end")
        if len(filters.date_to) <= 10:
            # A bare date includes the whole day.
            end = datetime.combine(end.date(), time.max, tzinfo=end.tzinfo)
        created["$lte"] = end
    if created:
        query["createdAt"] = created

    return query


def _sort_spec(filters: InquiryFilters) -> List[tuple]:
    field = filters.sort if filters.sort in SORTABLE_FIELDS else "createdAt"
    direction = ASCENDING if filters.order == "asc" else DESCENDING
    return [(field, direction)]


def _csv_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def render_csv(inquiries: List[dict]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for inquiry in inquiries:
        services = inquiry.get("selectedServices")
        full_name = f"{inquiry.get('firstName') or ''} {inquiry.get('lastName') or ''}".strip()
        writer.writerow([
            _csv_value(inquiry.get("_id")),
            _csv_value(inquiry.get("createdAt")),
            full_name,
            _csv_value(inquiry.get("clientType")),
            _csv_value(inquiry.get("email")),
            _csv_value(inquiry.get("phone")),
            _csv_value(inquiry.get("address")),
            "; ".join(services) if isinstance(services, list) else "",
            _csv_value(inquiry.get("budget")),
            _csv_value(inquiry.get("timeline")),
            _csv_value(inquiry.get("surface")),
            _csv_value(inquiry.get("status")),
            _csv_value(inquiry.get("paymentStatus")),
            _csv_value(inquiry.get("invoiceStatus")),
            _csv_value(inquiry.get("stripeCustomerId")),
            _csv_value(inquiry.get("stripeInvoiceId")),
            _csv_value(inquiry.get("submittedAt")),
            _csv_value(inquiry.get("paidAt")),
            _csv_value(inquiry.get("billingCollectedAt")),
        ])
    return buffer.getvalue()


class InquiryService:
    def __init__(self, store: DocumentStore):
        self.inquiries = store.collection(INQUIRIES)

    async def get(self, inquiry_id: Any) -> dict:
        inquiry = await self.inquiries.find_one({"_id": to_object_id(inquiry_id, "Inquiry")})
        if not inquiry:
            raise NotFoundError("Inquiry not found")
        return inquiry

    async def _update(self, inquiry_id: Any, update: Dict[str, Any]) -> dict:
        update.setdefault("$set", {})["updatedAt"] = utcnow()
        inquiry = await self.inquiries.find_one_and_update(
            {"_id": to_object_id(inquiry_id, "Inquiry")},
            update,
            return_document=ReturnDocument.AFTER,
        )
        if not inquiry:
            raise NotFoundError("Inquiry not found")
        return inquiry

    # ---------------- Funnel ----------------

    async def begin(self, identity: InquiryIdentity) -> dict:
        now = utcnow()
        document = identity.to_document()
        document.update({
            "step": 1,
            "status": InquiryStatus.DRAFT.value,
            "documentUrls": [],
            "adminNotes": [],
            "createdAt": now,
            "updatedAt": now,
        })
        result = await self.inquiries.insert_one(document)
        document["_id"] = result.inserted_id
        logger.info("inquiry_created", inquiry_id=str(result.inserted_id), client_type=document["clientType"])
        return document

    async def add_context(
        self,
        inquiry_id: Any,
        context: InquiryContext,
        document_urls: Optional[List[str]] = None,
    ) -> dict:
        update: Dict[str, Any] = {
            "$set": context.to_document(),
            "$max": {"step": 2},
        }
        if document_urls:
            update["$push"] = {"documentUrls": {"$each": document_urls}}
        inquiry = await self._update(inquiry_id, update)
        logger.info(
            "inquiry_context_saved",
            inquiry_id=str(inquiry["_id"]),
            documents=len(document_urls or []),
        )
        return inquiry

    async def choose_path(self, inquiry_id: Any, path: str) -> dict:
        inquiry = await self.get(inquiry_id)
        if inquiry.get("selectedPath") != path and is_path_locked(inquiry):
            raise ConflictError("The inquiry path can no longer be changed")
        update: Dict[str, Any] = {"$set": {"selectedPath": path}, "$max": {"step": 3}}
        if path == SelectedPath.GENERAL.value:
            update["$unset"] = {"consultationDetails": ""}
        updated = await self._update(inquiry["_id"], update)
        logger.info("inquiry_path_selected", inquiry_id=str(inquiry["_id"]), path=path)
        return updated

    async def submit_general(self, inquiry_id: Any) -> dict:
        inquiry = await self.get(inquiry_id)
        if inquiry.get("selectedPath") != SelectedPath.GENERAL.value:
            raise ConflictError("Only general inquiries can be submitted directly")
        ensure_transition(
            current_status(inquiry),
            InquiryStatus.SUBMITTED,
            allow_same=False,
            message="Inquiry has already been submitted",
        )
        now = utcnow()
        result = await self.inquiries.find_one_and_update(
            {"_id": inquiry["_id"], "status": inquiry.get("status", InquiryStatus.DRAFT.value)},
            {
                "$set": {
                    "status": InquiryStatus.SUBMITTED.value,
                    "submittedAt": now,
                    "updatedAt": now,
                },
                "$max": {"step": 4},
            },
            return_document=ReturnDocument.AFTER,
        )
        if not result:
            raise ConflictError("Inquiry has already been submitted")
        logger.info("inquiry_submitted", inquiry_id=str(inquiry["_id"]))
        return result

    async def set_consultation(self, inquiry_id: Any, details: ConsultationDetails) -> dict:
        inquiry = await self.get(inquiry_id)
        if inquiry.get("selectedPath") != SelectedPath.CONSULT.value:
            raise ConflictError("Consultation details require the consult path")
        fields = {f"consultationDetails.{key}": value for key, value in details.to_document().items()}
        updated = await self._update(inquiry["_id"], {"$set": fields, "$max": {"step": 4}})
        logger.info(
            "inquiry_consultation_saved",
            inquiry_id=str(inquiry["_id"]),
            duration=details.duration,
            roadmap_report=details.roadmap_report,
        )
        return updated

    # ---------------- Admin ----------------

    async def list_inquiries(self, filters: InquiryFilters, page: int = 1, limit: int = 25) -> Dict[str, Any]:
        query = build_query(filters)
        total = await self.inquiries.count_documents(query)
        cursor = (
            self.inquiries.find(query)
            .sort(_sort_spec(filters))
            .skip((page - 1) * limit)
            .limit(limit)
        )
        items = await cursor.to_list(length=limit)
        return {
            "inquiries": items,
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "totalPages": math.ceil(total / limit) if limit else 0,
            },
            "filters": await self.filter_options(),
        }

    async def filter_options(self) -> Dict[str, List[str]]:
        statuses = await self.inquiries.distinct("status")
        services = await self.inquiries.aggregate([
            {"$unwind": "$selectedServices"},
            {"$group": {"_id": "$selectedServices"}},
            {"$sort": {"_id": 1}},
        ]).to_list(length=None)
        return {
            "statuses": sorted(s for s in statuses if s),
            "services": [s["_id"] for s in services if s.get("_id")],
        }

    async def export(self, filters: InquiryFilters) -> str:
        cursor = self.inquiries.find(build_query(filters)).sort(_sort_spec(filters))
        inquiries = await cursor.to_list(length=None)
        logger.info("inquiries_exported", count=len(inquiries))
        return render_csv(inquiries)

    async def update_status(
        self,
        inquiry_id: Any,
        status: InquiryStatus,
        admin: dict,
        note: Optional[str] = None,
    ) -> dict:
        inquiry = await self.get(inquiry_id)
        target = InquiryStatus(status)
        current = current_status(inquiry)
        ensure_transition(current, target)
        ensure_status_fits(inquiry, target)

        now = utcnow()
        update: Dict[str, Any] = {"$set": {"status": target.value}}
        if target == InquiryStatus.REVIEWED and not inquiry.get("reviewedAt"):
            update["$set"]["reviewedAt"] = now
            update["$set"]["reviewedBy"] = admin.get("email")
        if note and note.strip():
            update["$push"] = {"adminNotes": self._note(note, admin, now)}
        updated = await self._update(inquiry["_id"], update)
        logger.info(
            "inquiry_status_updated",
            inquiry_id=str(inquiry["_id"]),
            from_status=current.value,
            to_status=target.value,
            admin=admin.get("email"),
        )
        return updated

    async def bulk_update_status(self, ids: List[str], status: InquiryStatus, admin: dict) -> Dict[str, Any]:
        updated: List[str] = []
        skipped: List[Dict[str, str]] = []
        for inquiry_id in ids:
            try:
                await self.update_status(inquiry_id, status, admin)
            except (ConflictError, NotFoundError) as e:
                skipped.append({"id": inquiry_id, "reason": e.message})
                continue
            updated.append(inquiry_id)
        logger.info("inquiries_bulk_status_updated", updated=len(updated), skipped=len(skipped))
        return {"updated": updated, "skipped": skipped}

    @staticmethod
    def _note(text: str, admin: dict, now: datetime) -> dict:
        return {
            "text": text.strip(),
            "author": {"id": str(admin.get("_id", "")), "email": admin.get("email")},
            "createdAt": now,
        }

    async def add_note(self, inquiry_id: Any, text: str, admin: dict) -> dict:
        inquiry = await self._update(
            inquiry_id,
            {"$push": {"adminNotes": self._note(text, admin, utcnow())}},
        )
        logger.info("inquiry_note_added", inquiry_id=str(inquiry["_id"]), admin=admin.get("email"))
        return inquiry

    async def delete(self, inquiry_id: Any) -> dict:
        inquiry = await self.get(inquiry_id)
        await self.inquiries.delete_one({"_id": inquiry["_id"]})
        logger.info("inquiry_deleted", inquiry_id=str(inquiry["_id"]))
        return inquiry

    async def bulk_delete(self, ids: List[str]) -> Tuple[int, List[str]]:
        """Delete the inquiries and return the count with their uploaded document URLs."""
        object_ids = [to_object_id(i, "Inquiry") for i in ids]
        query = {"_id": {"$in": object_ids}}
        matched = await self.inquiries.find(query, {"documentUrls": 1}).to_list(length=None)
        document_urls = [url for inquiry in matched for url in inquiry.get("documentUrls") or []]
        result = await self.inquiries.delete_many(query)
        logger.info("inquiries_bulk_deleted", deleted=result.deleted_count, documents=len(document_urls))
        return result.deleted_count, document_urls

    async def recent(self, limit: int = 5, query: Optional[dict] = None) -> List[dict]:
        cursor = self.inquiries.find(query or {}).sort([("createdAt", DESCENDING)]).limit(limit)
        return await cursor.to_list(length=limit)


def get_inquiry_service(store: DocumentStore = Depends(get_store)) -> InquiryService:
    return InquiryService(store)
