"""Consultation payments: checkout, webhook, reconciliation and business billing.

The webhook is the source of truth for payment completion. ``verify_payment``
and ``session_status`` reconcile from the provider when a webhook is late or
lost. All three funnel into ``apply_payment``, whose conditional update makes
the pending -> paid move happen exactly once whatever the delivery order.
"""

from typing import Any, Dict, Optional

from fastapi import Depends

from app.config import settings
from app.database import INQUIRIES, DocumentStore, get_store
from app.errors import (
    ConflictError,
    InvoiceFinalizationError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from app.models.inquiry import (
    CONSULTATION_PRICES,
    ROADMAP_REPORT_PRICE,
    ClientType,
    InquiryStatus,
    InvoiceStatus,
    PaymentStatus,
    SelectedPath,
    can_transition,
    current_status,
    price_for,
)
from app.schemas.common import is_valid_email
from app.schemas.payment import BusinessBillingRequest, CheckoutRequest
from app.services.payment_gateway import CheckoutSession, StripeGateway, get_payment_gateway
from app.utils.documents import to_object_id, utcnow
from app.utils.logging import get_logger

logger = get_logger("services.payment")

PAYMENT_EVENTS = {
    "checkout.session.completed",
    "checkout.session.async_payment_succeeded",
}


def build_line_items(duration: int, roadmap_report: bool) -> list:
    currency = settings.stripe_currency
    items = [
        {
            "price_data": {
                "currency": currency,
                "product_data": {
                    "name": f"Expert Consultation - {duration} minutes",
                    "description": f"Architecture consultation session ({duration} minutes)",
                },
                "unit_amount": CONSULTATION_PRICES[duration],
            },
            "quantity": 1,
        }
    ]
    if roadmap_report:
        items.append({
            "price_data": {
                "currency": currency,
                "product_data": {
                    "name": "The Roadmap Report",
                    "description": "Written summary & action plan",
                },
                "unit_amount": ROADMAP_REPORT_PRICE,
            },
            "quantity": 1,
        })
    return items


class PaymentService:
    def __init__(self, store: DocumentStore, gateway: StripeGateway):
        self.inquiries = store.collection(INQUIRIES)
        self.gateway = gateway

    async def _get_inquiry(self, inquiry_id: Any) -> dict:
        inquiry = await self.inquiries.find_one({"_id": to_object_id(inquiry_id, "Inquiry")})
        if not inquiry:
            raise NotFoundError("Inquiry not found")
        return inquiry

    # ---------------- Checkout ----------------

    async def create_checkout(self, request: CheckoutRequest) -> Dict[str, Any]:
        inquiry = await self._get_inquiry(request.inquiry_id)

        email = inquiry.get("email")
        if not is_valid_email(email):
            raise ValidationError("A valid email address is required before checkout")
        if inquiry.get("selectedPath") == SelectedPath.GENERAL.value:
            raise ConflictError("General inquiries do not require payment")
        if inquiry.get("paymentStatus") == PaymentStatus.PAID.value:
            raise ConflictError("This consultation has already been paid")

        is_business = inquiry.get("clientType") == ClientType.BUSINESS.value
        frontend = settings.primary_frontend_url
        session = await self.gateway.create_checkout_session(
            line_items=build_line_items(request.duration, request.roadmap_report),
            metadata={
                "inquiryId": str(inquiry["_id"]),
                "duration": str(request.duration),
                "roadmapReport": "true" if request.roadmap_report else "false",
                "clientType": inquiry.get("clientType") or ClientType.PRIVATE.value,
            },
            customer_email=email,
            success_url=f"{frontend}/inquiry/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{frontend}/inquiry/cancel",
            collect_tax_id=is_business,
        )

        fields: Dict[str, Any] = {
            "stripeSessionId": session.id,
            "paymentStatus": PaymentStatus.PENDING.value,
            "selectedPath": SelectedPath.CONSULT.value,
            "consultationDetails.duration": request.duration,
            "consultationDetails.roadmapReport": request.roadmap_report,
            "amountTotal": price_for(request.duration, request.roadmap_report),
            "currency": settings.stripe_currency,
            "updatedAt": utcnow(),
        }
        if session.customer_id:
            fields["stripeCustomerId"] = session.customer_id
        if session.invoice_id:
            fields["stripeInvoiceId"] = session.invoice_id
        if can_transition(current_status(inquiry), InquiryStatus.PAYMENT_PENDING):
            fields["status"] = InquiryStatus.PAYMENT_PENDING.value

        # A concurrent webhook may already have marked it paid; never step back.
        await self.inquiries.update_one(
            {"_id": inquiry["_id"], "paymentStatus": {"$ne": PaymentStatus.PAID.value}},
            {"$set": fields},
        )
        logger.info(
            "checkout_session_created",
            inquiry_id=str(inquiry["_id"]),
            session_id=session.id,
            duration=request.duration,
            roadmap_report=request.roadmap_report,
        )
        return {"sessionId": session.id, "url": session.url}

    # ---------------- Payment completion ----------------

    async def _resolve_inquiry_for_session(self, session: CheckoutSession) -> Optional[dict]:
        inquiry_id = session.inquiry_id
        if inquiry_id:
            try:
                oid = to_object_id(inquiry_id, "Inquiry")
            except NotFoundError:
                oid = None
            if oid is not None:
                inquiry = await self.inquiries.find_one({"_id": oid})
                if inquiry:
                    return inquiry
        if session.id:
            return await self.inquiries.find_one({"stripeSessionId": session.id})
        return None

    async def apply_payment(self, session: CheckoutSession, inquiry: Optional[dict] = None) -> bool:
        """Record a paid session. Returns True only for the call that made the change."""
        if not session.is_paid:
            return False

        if inquiry is None:
            inquiry = await self._resolve_inquiry_for_session(session)
        if not inquiry:
            logger.warning("payment_inquiry_not_found", session_id=session.id, inquiry_id=session.inquiry_id)
            return False

        if inquiry.get("paymentStatus") == PaymentStatus.PAID.value:
            logger.info("payment_already_recorded", inquiry_id=str(inquiry["_id"]), session_id=session.id)
            return False

        is_business = inquiry.get("clientType") == ClientType.BUSINESS.value
        now = utcnow()
        fields: Dict[str, Any] = {
            "paymentStatus": PaymentStatus.PAID.value,
            "paidAt": now,
            "stripeSessionId": session.id,
            "invoiceStatus": (
                InvoiceStatus.BILLING_PENDING.value if is_business else InvoiceStatus.FINALIZED.value
            ),
            "updatedAt": now,
        }
        if session.customer_id:
            fields["stripeCustomerId"] = session.customer_id
        if session.invoice_id:
            fields["stripeInvoiceId"] = session.invoice_id
        if session.amount_total is not None:
            fields["amountTotal"] = session.amount_total
        if session.currency:
            fields["currency"] = session.currency

        status = current_status(inquiry)
        if can_transition(status, InquiryStatus.PAID):
            fields["status"] = InquiryStatus.PAID.value
        else:
            logger.warning(
                "payment_status_transition_skipped",
                inquiry_id=str(inquiry["_id"]),
                current_status=status.value,
            )

        result = await self.inquiries.update_one(
            {"_id": inquiry["_id"], "paymentStatus": {"$ne": PaymentStatus.PAID.value}},
            {"$set": fields},
        )
        if result.modified_count == 0:
            logger.info("payment_already_recorded", inquiry_id=str(inquiry["_id"]), session_id=session.id)
            return False

        logger.info(
            "payment_recorded",
            inquiry_id=str(inquiry["_id"]),
            session_id=session.id,
            client_type=inquiry.get("clientType"),
        )
        return True

    async def handle_event(self, event: Dict[str, Any]) -> bool:
        event_type = event.get("type")
        obj = (event.get("data") or {}).get("object") or {}

        if event_type not in PAYMENT_EVENTS:
            logger.info("stripe_webhook_ignored_event", event_type=event_type, event_id=event.get("id"))
            return False

        session = CheckoutSession.from_payload(obj)
        logger.info(
            "stripe_webhook_received",
            event_type=event_type,
            event_id=event.get("id"),
            session_id=session.id,
            payment_status=session.payment_status,
        )
        if event_type == "checkout.session.async_payment_succeeded":
            # The event itself confirms funds; the object may still read "unpaid".
            session.payment_status = "paid"
        return await self.apply_payment(session)

    async def verify_payment(self, inquiry_id: Any) -> Dict[str, Any]:
        """Pull-based fallback when the webhook has not arrived."""
        inquiry = await self._get_inquiry(inquiry_id)
        session_id = inquiry.get("stripeSessionId")
        if not session_id:
            raise ConflictError("No checkout session found for this inquiry")

        session = await self.gateway.retrieve_session(session_id)
        updated = False
        if session.is_paid and inquiry.get("paymentStatus") != PaymentStatus.PAID.value:
            updated = await self.apply_payment(session, inquiry)
        inquiry = await self._get_inquiry(inquiry["_id"])
        logger.info(
            "payment_verified",
            inquiry_id=str(inquiry["_id"]),
            session_payment_status=session.payment_status,
            updated=updated,
        )
        return {
            "updated": updated,
            "paymentStatus": inquiry.get("paymentStatus"),
            "status": inquiry.get("status"),
            "sessionPaymentStatus": session.payment_status,
        }

    async def session_status(self, session_id: str) -> Dict[str, Any]:
        session = await self.gateway.retrieve_session(session_id)
        if session.is_paid:
            await self.apply_payment(session)
        return {
            "sessionId": session.id,
            "paymentStatus": session.payment_status,
            "status": session.status,
            "customerEmail": session.customer_email,
            "amountTotal": session.amount_total,
            "currency": session.currency,
            "metadata": session.metadata,
        }

    # ---------------- Business billing ----------------

    async def _resolve_billing_inquiry(self, request: BusinessBillingRequest) -> dict:
        if request.inquiry_id:
            return await self._get_inquiry(request.inquiry_id)
        if request.invoice_id:
            inquiry = await self.inquiries.find_one({"stripeInvoiceId": request.invoice_id})
            if inquiry:
                return inquiry
        if request.customer_id:
            inquiry = await self.inquiries.find_one({"stripeCustomerId": request.customer_id})
            if inquiry:
                return inquiry
        if not (request.invoice_id or request.customer_id):
            raise ValidationError("An inquiry ID or payment references are required")
        raise NotFoundError("Inquiry not found")

    async def finalize_business_billing(self, request: BusinessBillingRequest) -> Dict[str, Any]:
        inquiry = await self._resolve_billing_inquiry(request)
        inquiry_id = str(inquiry["_id"])

        if inquiry.get("clientType") != ClientType.BUSINESS.value:
            raise ValidationError("Billing details are only collected for business clients")
        if inquiry.get("paymentStatus") != PaymentStatus.PAID.value:
            raise ConflictError("Payment must be completed before submitting billing details")

        customer_id = inquiry.get("stripeCustomerId")
        invoice_id = inquiry.get("stripeInvoiceId")
        if request.customer_id and customer_id and request.customer_id != customer_id:
            raise ValidationError("Customer does not match this inquiry")
        if request.invoice_id and invoice_id and request.invoice_id != invoice_id:
            raise ValidationError("Invoice does not match this inquiry")
        customer_id = customer_id or request.customer_id
        invoice_id = invoice_id or request.invoice_id
        if not customer_id or not invoice_id:
            raise ConflictError("Payment references are not available yet. Please try again shortly.")

        address = {
            "line1": request.address.line1,
            "city": request.address.city,
            "postal_code": request.address.postal_code,
            "country": request.address.country,
        }
        if request.address.line2:
            address["line2"] = request.address.line2

        await self.gateway.update_customer(customer_id, name=request.company_name, address=address)
        logger.info("billing_customer_updated", inquiry_id=inquiry_id, customer_id=customer_id)

        if request.vat_number:
            try:
                await self.gateway.add_tax_id(customer_id, request.vat_number)
            except UpstreamError as e:
                logger.warning(
                    "billing_tax_id_failed",
                    inquiry_id=inquiry_id,
                    customer_id=customer_id,
                    error=e.message,
                )

        try:
            invoice = await self.gateway.retrieve_invoice(invoice_id)
            if invoice.status == "draft":
                invoice = await self.gateway.finalize_invoice(invoice_id)
                logger.info("billing_invoice_finalized", inquiry_id=inquiry_id, invoice_id=invoice_id)
            else:
                logger.info(
                    "billing_invoice_already_final",
                    inquiry_id=inquiry_id,
                    invoice_id=invoice_id,
                    invoice_status=invoice.status,
                )
        except UpstreamError as e:
            logger.error(
                "billing_invoice_finalization_failed",
                inquiry_id=inquiry_id,
                invoice_id=invoice_id,
                error=e.message,
            )
            raise InvoiceFinalizationError()

        now = utcnow()
        fields: Dict[str, Any] = {
            "invoiceStatus": InvoiceStatus.FINALIZED.value,
            "billingCollectedAt": now,
            "billingDetails": {
                "companyName": request.company_name,
                "address": request.address.to_document(),
                "vatNumber": request.vat_number,
            },
            "stripeCustomerId": customer_id,
            "stripeInvoiceId": invoice_id,
            "updatedAt": now,
        }
        if can_transition(current_status(inquiry), InquiryStatus.PAID):
            fields["status"] = InquiryStatus.PAID.value
        await self.inquiries.update_one({"_id": inquiry["_id"]}, {"$set": fields})

        return {
            "inquiryId": inquiry_id,
            "invoiceId": invoice_id,
            "invoiceStatus": invoice.status,
        }


def get_payment_service(
    store: DocumentStore = Depends(get_store),
    gateway: StripeGateway = Depends(get_payment_gateway),
) -> PaymentService:
    return PaymentService(store, gateway)
