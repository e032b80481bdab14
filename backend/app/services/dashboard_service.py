import asyncio
from typing import Any, Dict, List

from fastapi import Depends
from pymongo import DESCENDING

from app.database import BLOGS, INQUIRIES, NEWS, PROJECTS, TESTIMONIALS, DocumentStore, get_store
from app.errors import UpstreamError
from app.models.inquiry import PaymentStatus
from app.services.payment_gateway import CheckoutSession, StripeGateway, get_payment_gateway
from app.utils.logging import get_logger

logger = get_logger("services.dashboard")

RECENT_LIMIT = 5
PAID = {"paymentStatus": PaymentStatus.PAID.value}


def _inquiry_summary(inquiry: dict) -> Dict[str, Any]:
    return {
        "_id": inquiry["_id"],
        "firstName": inquiry.get("firstName"),
        "lastName": inquiry.get("lastName"),
        "email": inquiry.get("email"),
        "clientType": inquiry.get("clientType"),
        "status": inquiry.get("status"),
        "paymentStatus": inquiry.get("paymentStatus"),
        "createdAt": inquiry.get("createdAt"),
    }


def _booking_summary(inquiry: dict) -> Dict[str, Any]:
    summary = _inquiry_summary(inquiry)
    details = inquiry.get("consultationDetails") or {}
    summary.update({
        "duration": details.get("duration"),
        "roadmapReport": details.get("roadmapReport"),
        "invoiceStatus": inquiry.get("invoiceStatus"),
        "paidAt": inquiry.get("paidAt"),
    })
    return summary


class DashboardService:
    def __init__(self, store: DocumentStore, gateway: StripeGateway):
        self.store = store
        self.gateway = gateway

    async def _counts(self) -> Dict[str, int]:
        inquiries = self.store.collection(INQUIRIES)
        (
            projects,
            testimonials,
            total_inquiries,
            paid_bookings,
            blogs,
            news,
        ) = await asyncio.gather(
            self.store.collection(PROJECTS).count_documents({}),
            self.store.collection(TESTIMONIALS).count_documents({}),
            inquiries.count_documents({}),
            inquiries.count_documents(PAID),
            self.store.collection(BLOGS).count_documents({}),
            self.store.collection(NEWS).count_documents({}),
        )
        return {
            "projects": projects,
            "testimonials": testimonials,
            "inquiries": total_inquiries,
            "paidBookings": paid_bookings,
            "blogPosts": blogs,
            "newsPosts": news,
        }

    async def _revenue(self, paid: List[dict]) -> Dict[str, Any]:
        session_ids = [i["stripeSessionId"] for i in paid if i.get("stripeSessionId")]
        results = await asyncio.gather(
            *(self.gateway.retrieve_session(sid) for sid in session_ids),
            return_exceptions=True,
        )

        total_cents = 0
        failed = 0
        sessions: List[CheckoutSession] = []
        for session_id, result in zip(session_ids, results):
            if isinstance(result, UpstreamError):
                failed += 1
                logger.warning("dashboard_session_lookup_failed", session_id=session_id, error=result.message)
                continue
            if isinstance(result, Exception):
                raise result
            sessions.append(result)
            if result.is_paid and result.amount_total:
                total_cents += result.amount_total

        latest = paid[0] if paid else None
        last_status = None
        if latest is not None and sessions and latest.get("stripeSessionId") == sessions[0].id:
            last_status = sessions[0].payment_status
        return {
            "totalRevenue": total_cents / 100,
            "currency": sessions[0].currency if sessions else None,
            "lastPaymentStatus": last_status,
            "lastPaymentDate": (latest.get("paidAt") or latest.get("updatedAt")) if latest else None,
            "failedLookups": failed,
        }

    async def stats(self) -> Dict[str, Any]:
        inquiries = self.store.collection(INQUIRIES)
        counts = await self._counts()
        recent = await inquiries.find({}).sort([("createdAt", DESCENDING)]).to_list(length=RECENT_LIMIT)
        paid = await inquiries.find(
            {**PAID, "stripeSessionId": {"$exists": True, "$ne": None}}
        ).sort([("paidAt", DESCENDING), ("createdAt", DESCENDING)]).to_list(length=None)

        revenue = await self._revenue(paid)
        logger.info("dashboard_stats_computed", paid_sessions=len(paid), failed_lookups=revenue["failedLookups"])
        return {
            "counts": counts,
            "recentActivity": {
                "inquiries": [_inquiry_summary(i) for i in recent],
                "bookings": [_booking_summary(i) for i in paid[:RECENT_LIMIT]],
            },
            "revenue": revenue,
        }


def get_dashboard_service(
    store: DocumentStore = Depends(get_store),
    gateway: StripeGateway = Depends(get_payment_gateway),
) -> DashboardService:
    return DashboardService(store, gateway)
