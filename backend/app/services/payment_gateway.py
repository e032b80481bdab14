"""Thin wrapper around the Stripe SDK.

Everything the rest of the application needs from Stripe goes through
``StripeGateway`` and comes back as plain dataclasses, so services never
touch SDK objects and tests can substitute a fake gateway.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import anyio
import stripe
from fastapi import Request

from app.config import settings
from app.errors import UpstreamError, WebhookSignatureError
from app.utils.logging import get_logger

logger = get_logger("services.payment_gateway")


def _as_dict(value: Any) -> Dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, dict):
        return dict(value)
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return {}


def _ref(value: Any) -> Optional[str]:
    """Expanded objects carry an ``id``; unexpanded references are plain strings."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return value.get("id")
    return getattr(value, "id", None)


@dataclass
class CheckoutSession:
    id: str
    url: Optional[str] = None
    status: Optional[str] = None
    payment_status: Optional[str] = None
    customer_id: Optional[str] = None
    invoice_id: Optional[str] = None
    customer_email: Optional[str] = None
    amount_total: Optional[int] = None
    currency: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"

    @property
    def inquiry_id(self) -> Optional[str]:
        return self.metadata.get("inquiryId")

    @classmethod
    def from_payload(cls, obj: Dict[str, Any]) -> "CheckoutSession":
        """Build from the JSON ``data.object`` of a webhook event."""
        details = obj.get("customer_details") or {}
        return cls(
            id=obj.get("id", ""),
            url=obj.get("url"),
            status=obj.get("status"),
            payment_status=obj.get("payment_status"),
            customer_id=_ref(obj.get("customer")),
            invoice_id=_ref(obj.get("invoice")),
            customer_email=obj.get("customer_email") or details.get("email"),
            amount_total=obj.get("amount_total"),
            currency=obj.get("currency"),
            metadata=dict(obj.get("metadata") or {}),
        )

    @classmethod
    def from_stripe(cls, session: Any) -> "CheckoutSession":
        details = getattr(session, "customer_details", None)
        return cls(
            id=session.id,
            url=getattr(session, "url", None),
            status=getattr(session, "status", None),
            payment_status=getattr(session, "payment_status", None),
            customer_id=_ref(getattr(session, "customer", None)),
            invoice_id=_ref(getattr(session, "invoice", None)),
            customer_email=getattr(session, "customer_email", None)
            or (getattr(details, "email", None) if details is not None else None),
            amount_total=getattr(session, "amount_total", None),
            currency=getattr(session, "currency", None),
            metadata=_as_dict(getattr(session, "metadata", None)),
        )


@dataclass
class Invoice:
    id: str
    status: Optional[str] = None


class StripeGateway:
    def __init__(self, api_key: Optional[str] = None, webhook_secret: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.stripe_secret_key
        self._webhook_secret = webhook_secret

    @property
    def webhook_secret(self) -> str:
        # Read lazily so settings overrides apply without rebuilding the gateway.
        return self._webhook_secret if self._webhook_secret is not None else settings.stripe_webhook_secret

    async def _call(self, operation: str, func, *args, **kwargs):
        if not self.api_key:
            logger.error("stripe_not_configured", operation=operation)
            raise UpstreamError("Payment provider is not configured")

        def run():
            return func(*args, api_key=self.api_key, **kwargs)

        try:
            return await anyio.to_thread.run_sync(run)
        except stripe.StripeError as e:
            logger.error(
                "stripe_call_failed",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise UpstreamError(getattr(e, "user_message", None) or str(e))

    async def create_checkout_session(
        self,
        *,
        line_items: List[Dict[str, Any]],
        metadata: Dict[str, str],
        customer_email: Optional[str],
        success_url: str,
        cancel_url: str,
        collect_tax_id: bool,
    ) -> CheckoutSession:
        params: Dict[str, Any] = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": line_items,
            "metadata": metadata,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "customer_creation": "always",
            "billing_address_collection": "required",
            "invoice_creation": {"enabled": True},
        }
        if customer_email:
            params["customer_email"] = customer_email
        if collect_tax_id:
            params["tax_id_collection"] = {"enabled": True}
        session = await self._call("checkout_session_create", stripe.checkout.Session.create, **params)
        return CheckoutSession.from_stripe(session)

    async def retrieve_session(self, session_id: str) -> CheckoutSession:
        session = await self._call("checkout_session_retrieve", stripe.checkout.Session.retrieve, session_id)
        return CheckoutSession.from_stripe(session)

    async def update_customer(self, customer_id: str, *, name: str, address: Dict[str, Any]) -> None:
        await self._call("customer_modify", stripe.Customer.modify, customer_id, name=name, address=address)

    async def add_tax_id(self, customer_id: str, value: str, tax_type: str = "eu_vat") -> None:
        await self._call(
            "customer_create_tax_id",
            stripe.Customer.create_tax_id,
            customer_id,
            type=tax_type,
            value=value,
        )

    async def retrieve_invoice(self, invoice_id: str) -> Invoice:
        invoice = await self._call("invoice_retrieve", stripe.Invoice.retrieve, invoice_id)
        return Invoice(id=invoice.id, status=getattr(invoice, "status", None))

    async def finalize_invoice(self, invoice_id: str) -> Invoice:
        invoice = await self._call("invoice_finalize", stripe.Invoice.finalize_invoice, invoice_id)
        return Invoice(id=invoice.id, status=getattr(invoice, "status", None))

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """Verify a webhook delivery and return the decoded event."""
        secret = self.webhook_secret
        if not secret:
            logger.error("stripe_webhook_secret_missing")
            raise WebhookSignatureError("Webhook secret is not configured")
        if not signature:
            raise WebhookSignatureError("Missing stripe-signature header")
        try:
            text = payload.decode("utf-8")
            stripe.WebhookSignature.verify_header(
                text,
                signature,
                secret,
                tolerance=settings.stripe_webhook_tolerance,
            )
        except (stripe.SignatureVerificationError, UnicodeDecodeError) as e:
            logger.warning("stripe_webhook_signature_invalid", error=str(e))
            raise WebhookSignatureError(f"Webhook Error: {e}")
        try:
            event = json.loads(text)
        except json.JSONDecodeError:
            raise WebhookSignatureError("Webhook Error: invalid payload")
        if not isinstance(event, dict):
            raise WebhookSignatureError("Webhook Error: invalid payload")
        return event


def get_payment_gateway(request: Request) -> StripeGateway:
    return request.app.state.payments
