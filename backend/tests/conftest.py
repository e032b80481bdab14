import asyncio
import hashlib
import hmac
import json
import time
from typing import Dict, List, Optional, Set

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from app.database import DocumentStore
from app.errors import UpstreamError
from app.main import create_app
from app.services.admin_service import AdminService
from app.services.blob_service import AssetStorage
from app.services.payment_gateway import CheckoutSession, Invoice, StripeGateway
from app.utils.security import create_access_token

WEBHOOK_SECRET = "whsec_test_secret"
ADMIN_EMAIL = "admin@atelier.test"
ADMIN_PASSWORD = "correct-horse-battery"


class FakeGateway(StripeGateway):
    """Stripe stand-in: network calls are answered from memory, signatures are real."""

    def __init__(self):
        super().__init__(api_key="sk_test_fake", webhook_secret=WEBHOOK_SECRET)
        self.sessions: Dict[str, CheckoutSession] = {}
        self.invoices: Dict[str, Invoice] = {}
        self.created: List[dict] = []
        self.customer_updates: List[dict] = []
        self.failing_sessions: Set[str] = set()
        self.fail_tax_id = False
        self.fail_finalize = False

    async def create_checkout_session(self, **params) -> CheckoutSession:
        self.created.append(params)
        session = CheckoutSession(
            id=f"cs_test_{len(self.created)}",
            url=f"https://checkout.stripe.test/{len(self.created)}",
            status="open",
            payment_status="unpaid",
            metadata=dict(params["metadata"]),
        )
        self.sessions[session.id] = session
        return session

    async def retrieve_session(self, session_id: str) -> CheckoutSession:
        if session_id in self.failing_sessions:
            raise UpstreamError("No such checkout session")
        return self.sessions[session_id]

    async def update_customer(self, customer_id: str, *, name: str, address: dict) -> None:
        self.customer_updates.append({"customer": customer_id, "name": name, "address": address})

    async def add_tax_id(self, customer_id: str, value: str, tax_type: str = "eu_vat") -> None:
        if self.fail_tax_id:
            raise UpstreamError("Invalid VAT number")

    async def retrieve_invoice(self, invoice_id: str) -> Invoice:
        return self.invoices.setdefault(invoice_id, Invoice(id=invoice_id, status="draft"))

    async def finalize_invoice(self, invoice_id: str) -> Invoice:
        if self.fail_finalize:
            raise UpstreamError("Invoice cannot be finalized")
        invoice = Invoice(id=invoice_id, status="open")
        self.invoices[invoice_id] = invoice
        return invoice

    def mark_paid(self, session_id: str, *, customer_id: str = "cus_test", invoice_id: str = "in_test") -> CheckoutSession:
        session = self.sessions[session_id]
        session.status = "complete"
        session.payment_status = "paid"
        session.customer_id = customer_id
        session.invoice_id = invoice_id
        session.amount_total = 9999
        session.currency = "eur"
        return session


class FakeAssetStorage(AssetStorage):
    """Blob storage stand-in that remembers what was uploaded and deleted."""

    configured = True

    def __init__(self):
        self.uploaded: List[str] = []
        self.deleted: List[str] = []
        self.fail_uploads = False

    async def upload(self, data: bytes, *, folder: str, filename: str, content_type: str, max_retries: int = 3) -> Optional[str]:
        if self.fail_uploads:
            return None
        url = f"https://assets.test/{folder}/{len(self.uploaded)}-{filename}"
        self.uploaded.append(url)
        return url

    async def delete(self, url: str) -> bool:
        self.deleted.append(url)
        return True


def build_signature_header(body: bytes, secret: str, timestamp: str) -> str:
    signed_payload = f"{timestamp}.{body.decode('utf-8')}"
    signature = hmac.new(
        secret.encode("utf-8"),
        signed_payload.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return f"t={timestamp},v1={signature}"


def signed_event(event: dict, secret: str = WEBHOOK_SECRET):
    body = json.dumps(event).encode("utf-8")
    timestamp = str(int(time.time()))
    headers = {
        "content-type": "application/json",
        "stripe-signature": build_signature_header(body, secret, timestamp),
    }
    return body, headers


@pytest.fixture
def store():
    database = AsyncMongoMockClient()["atelier_test"]
    return DocumentStore(database=database)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def assets():
    return FakeAssetStorage()


@pytest.fixture
def client(store, gateway, assets):
    app = create_app(store=store, assets=assets, payments=gateway)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin(store):
    return asyncio.run(AdminService(store).create(ADMIN_EMAIL, ADMIN_PASSWORD, name="Studio Admin"))


@pytest.fixture
def admin_headers(admin):
    token = create_access_token(str(admin["_id"]), admin["email"], admin["role"])
    return {"Authorization": f"Bearer {token}"}


def start_inquiry(client, client_type: str = "private", email: str = "claire@example.com") -> str:
    response = client.post(
        "/api/inquiries",
        json={"clientType": client_type, "firstName": "Claire", "lastName": "Martin", "email": email},
    )
    assert response.status_code == 201
    return response.json()["data"]["_id"]


def consult_inquiry(client, client_type: str = "private") -> str:
    inquiry_id = start_inquiry(client, client_type)
    response = client.put(f"/api/inquiries/{inquiry_id}/path", json={"selectedPath": "consult"})
    assert response.status_code == 200
    return inquiry_id
