"""Inquiry enums and the status state machine."""

from enum import Enum
from typing import Dict, FrozenSet, Optional

from app.errors import ConflictError


class ClientType(str, Enum):
    PRIVATE = "private"
    BUSINESS = "business"


class SelectedPath(str, Enum):
    GENERAL = "general"
    CONSULT = "consult"


class Timeline(str, Enum):
    ASAP = "asap"
    THREE_MONTHS = "3m"
    SIX_MONTHS = "6m"
    ONE_YEAR = "1y"


class InquiryStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    REVIEWED = "reviewed"
    CONSULTATION_PENDING_PAYMENT = "consultation_pending_payment"
    PAYMENT_PENDING = "payment_pending"
    PAID = "paid"
    INVOICE_FINALIZED = "invoice_finalized"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    BILLING_PENDING = "billing_pending"
    FINALIZED = "finalized"


CONSULTATION_DURATIONS = (30, 60, 90)

# Price in cents per consultation length, plus the optional roadmap report.
CONSULTATION_PRICES: Dict[int, int] = {30: 6499, 60: 9999, 90: 15999}
ROADMAP_REPORT_PRICE = 5000

_S = InquiryStatus

ALLOWED_TRANSITIONS: Dict[InquiryStatus, FrozenSet[InquiryStatus]] = {
    _S.DRAFT: frozenset({
        _S.SUBMITTED,
        _S.CONSULTATION_PENDING_PAYMENT,
        _S.PAYMENT_PENDING,
        _S.PAID,
        _S.CANCELLED,
    }),
    _S.CONSULTATION_PENDING_PAYMENT: frozenset({_S.PAYMENT_PENDING, _S.PAID, _S.CANCELLED}),
    _S.PAYMENT_PENDING: frozenset({_S.PAID, _S.CANCELLED}),
    _S.SUBMITTED: frozenset({_S.REVIEWED, _S.COMPLETED, _S.CANCELLED}),
    _S.REVIEWED: frozenset({_S.COMPLETED, _S.CANCELLED}),
    _S.PAID: frozenset({_S.INVOICE_FINALIZED, _S.COMPLETED, _S.CANCELLED}),
    _S.INVOICE_FINALIZED: frozenset({_S.COMPLETED, _S.CANCELLED}),
    _S.COMPLETED: frozenset(),
    _S.CANCELLED: frozenset(),
}


CONSULT_ONLY_STATUSES: FrozenSet[InquiryStatus] = frozenset({
    _S.CONSULTATION_PENDING_PAYMENT,
    _S.PAYMENT_PENDING,
    _S.PAID,
    _S.INVOICE_FINALIZED,
})

# These can only follow a completed payment.
SETTLED_STATUSES: FrozenSet[InquiryStatus] = frozenset({_S.PAID, _S.INVOICE_FINALIZED})


def current_status(inquiry: dict) -> InquiryStatus:
    try:
        return InquiryStatus(inquiry.get("status") or InquiryStatus.DRAFT.value)
    except ValueError:
        return InquiryStatus.DRAFT


def can_transition(current: InquiryStatus, target: InquiryStatus) -> bool:
    """Staying in the current status is always allowed and is a no-op."""
    if current == target:
        return True
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def ensure_transition(
    current: InquiryStatus,
    target: InquiryStatus,
    *,
    allow_same: bool = True,
    message: Optional[str] = None,
) -> None:
    if current == target and not allow_same:
        raise ConflictError(message or f"Inquiry is already {current.value}")
    if not can_transition(current, target):
        raise ConflictError(
            message or f"Cannot move inquiry from {current.value} to {target.value}"
        )


def ensure_status_fits(inquiry: dict, target: InquiryStatus) -> None:
    """Payment statuses belong to paid consult inquiries only."""
    if current_status(inquiry) == target:
        return
    if target in CONSULT_ONLY_STATUSES and inquiry.get("selectedPath") != SelectedPath.CONSULT.value:
        raise ConflictError(f"Only consult inquiries can be marked {target.value}")
    if target in SETTLED_STATUSES and inquiry.get("paymentStatus") != PaymentStatus.PAID.value:
        raise ConflictError(f"Inquiry cannot be marked {target.value} before payment is completed")


def is_path_locked(inquiry: dict) -> bool:
    """The path is fixed once submission or payment has begun."""
    if current_status(inquiry) != InquiryStatus.DRAFT:
        return True
    return bool(inquiry.get("stripeSessionId") or inquiry.get("paymentStatus"))


def price_for(duration: int, roadmap_report: bool) -> int:
    return CONSULTATION_PRICES[duration] + (ROADMAP_REPORT_PRICE if roadmap_report else 0)
