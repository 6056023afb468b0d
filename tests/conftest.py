import hashlib
import hmac
import json
import os
import time
import uuid
from typing import Any, Dict, Generator, List

import pytest

os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")
os.environ.setdefault("DISABLE_POLLER_FOR_TESTS", "1")

from fastapi.testclient import TestClient

from rental_hub.bookings.models import BookingRecord, BookingStatus
from rental_hub.bookings.repository import to_record, to_records
from rental_hub.exceptions import BookingNotFoundError, PaymentProcessorError, StoreUnavailableError
from rental_hub.payments.stripe_client import StripeGateway
from rental_hub.reconciliation.context import ReconciliationContext, ReconciliationSettings
from rental_hub.reconciliation.guard import IdempotencyGuard

WEBHOOK_SECRET = "whsec_test_secret"

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "/tests/unit/" in nodeid or nodeid.startswith("tests/unit/"):
            item.add_marker(pytest.mark.unit)
        elif "/tests/integration/" in nodeid or nodeid.startswith("tests/integration/"):
            item.add_marker(pytest.mark.integration)


class FakeBookingStore:
    """Store en mémoire: même contrat que SupabaseBookingStore (écritures partielles)."""

    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.updates: List[tuple] = []
        self.fail_query = False
        self.fail_retrieve = False
        self.fail_update = False
        self.fail_create = False

    def add(self, **fields) -> str:
        booking_id = fields.pop("id", None) or str(uuid.uuid4())
        row = {
            "id": booking_id,
            "ref": "BK-" + booking_id[:6].upper(),
            "status": "Pending",
            "email": "alice@example.com",
            "first_name": "Alice",
            "last_name": "Martin",
            "event_type": "Workshop",
            "date": "2026-11-02",
            "start_time": "10:00",
            "end_time": "14:00",
            "total_amount": "300.00",
        }
        row.update(fields)
        self.rows[booking_id] = row
        return booking_id

    def set_status(self, booking_id: str, status: str) -> None:
        self.rows[booking_id]["status"] = status

    def query(self, statuses):
        if self.fail_query:
            raise StoreUnavailableError("query down")
        wanted = {BookingStatus(s).value for s in statuses}
        return to_records(r for r in self.rows.values() if r.get("status") in wanted)

    def retrieve(self, booking_id: str) -> BookingRecord:
        if self.fail_retrieve:
            raise StoreUnavailableError("retrieve down")
        row = self.rows.get(booking_id)
        if row is None:
            raise BookingNotFoundError(booking_id)
        return to_record(row)

    def update(self, booking_id, fields, only_if_status=None):
        if self.fail_update:
            raise StoreUnavailableError("update down")
        row = self.rows.get(booking_id)
        if row is None:
            return None
        if only_if_status is not None and row.get("status") not in {BookingStatus(s).value for s in only_if_status}:
            return None
        self.updates.append((booking_id, dict(fields)))
        row.update(fields)
        return to_record(row)

    def create(self, row):
        if self.fail_create:
            raise StoreUnavailableError("insert down")
        booking_id = str(uuid.uuid4())
        self.rows[booking_id] = dict(row, id=booking_id)
        return to_record(self.rows[booking_id])


class FakePaymentGateway(StripeGateway):
    """Vérification de signature réelle (Stripe SDK), création de session simulée."""

    def __init__(self):
        super().__init__(api_key="sk_test_fake", webhook_secret=WEBHOOK_SECRET)
        self.sessions: List[Dict[str, Any]] = []
        self.fail_create = False

    def create_session(self, **kwargs):
        if self.fail_create:
            raise PaymentProcessorError("stripe down")
        n = len(self.sessions) + 1
        session = {"id": f"cs_test_{n}", "url": f"https://checkout.stripe.test/pay/cs_test_{n}"}
        self.sessions.append(dict(kwargs, **session))
        return session


class RecordingNotifier:
    def __init__(self):
        self.tasks = []

    def enqueue(self, task):
        self.tasks.append(task)
        return None

    def to(self, address: str):
        return [t for t in self.tasks if t.to == address]


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    """En-tête Stripe-Signature valide: t=<ts>,v1=HMAC_SHA256(secret, "<ts>.<payload>")."""
    ts = int(timestamp if timestamp is not None else time.time())
    signed = f"{ts}.{payload.decode('utf-8')}".encode("utf-8")
    sig = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={sig}"


def completed_event(booking_id=None, ref="BK-TEST01", payment_intent="pi_123", event_id="evt_1") -> bytes:
    metadata = {"booking_id": booking_id, "ref": ref} if booking_id else {}
    event = {
        "id": event_id,
        "type": "checkout.session.completed",
        "data": {"object": {"id": "cs_test_1", "payment_intent": payment_intent, "metadata": metadata}},
    }
    return json.dumps(event).encode("utf-8")


@pytest.fixture
def store() -> FakeBookingStore:
    return FakeBookingStore()

@pytest.fixture
def gateway() -> FakePaymentGateway:
    return FakePaymentGateway()

@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()

@pytest.fixture
def ctx(store, gateway, notifier) -> ReconciliationContext:
    return ReconciliationContext(
        store=store,
        processor=gateway,
        notifier=notifier,
        guard=IdempotencyGuard(),
        settings=ReconciliationSettings(
            poll_interval=15.0,
            currency="usd",
            frontend_url="https://front.test",
            team_email="team@example.com",
            dashboard_url="",
        ),
    )

@pytest.fixture
def app():
    from rental_hub.app import app as fastapi_app
    return fastapi_app

@pytest.fixture
def client(app, ctx) -> Generator[TestClient, None, None]:
    app.state.reconciliation = ctx
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.state.reconciliation = None
