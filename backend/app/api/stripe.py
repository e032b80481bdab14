"""Stripe checkout, session lookup, reconciliation and webhook endpoints."""

from fastapi import APIRouter, Depends, Request

from app.schemas.payment import CheckoutRequest
from app.services.payment_gateway import StripeGateway, get_payment_gateway
from app.services.payment_service import PaymentService, get_payment_service
from app.utils.documents import success
from app.utils.logging import get_logger
from app.utils.request_parsing import ParsedRequest, parse_request, validate_model

router = APIRouter()
logger = get_logger("api.stripe")


@router.post("/create-checkout-session")
async def create_checkout_session(
    parsed: ParsedRequest = Depends(parse_request),
    service: PaymentService = Depends(get_payment_service),
) -> dict:
    checkout = validate_model(CheckoutRequest, parsed.data)
    data = await service.create_checkout(checkout)
    return success(data)


@router.get("/session/{session_id}")
async def get_checkout_session(
    session_id: str,
    service: PaymentService = Depends(get_payment_service),
) -> dict:
    data = await service.session_status(session_id)
    return success(data)


@router.post("/verify-payment/{inquiry_id}")
async def verify_payment(
    inquiry_id: str,
    service: PaymentService = Depends(get_payment_service),
) -> dict:
    data = await service.verify_payment(inquiry_id)
    message = "Payment status updated to paid" if data["updated"] else "Payment status verified"
    return success(data, message)


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    gateway: StripeGateway = Depends(get_payment_gateway),
    service: PaymentService = Depends(get_payment_service),
) -> dict:
    """Receive Stripe events. The signature is checked against the raw body."""
    body = await request.body()
    event = gateway.construct_event(body, request.headers.get("stripe-signature"))
    applied = await service.handle_event(event)
    logger.info("stripe_webhook_processed", event_type=event.get("type"), applied=applied)
    return {"received": True}
