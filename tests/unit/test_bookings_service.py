import re
from decimal import Decimal

import pytest
from pydantic import ValidationError

from rental_hub.bookings.models import BookingRecord, BookingRequest, BookingStatus
from rental_hub.bookings.service import create_booking, generate_ref, get_booking_status
from rental_hub.exceptions import BookingNotFoundError, StoreUnavailableError


def _payload(**overrides):
    data = {
        "firstName": "Dana",
        "lastName": "Lee",
        "email": "dana@example.com",
        "phone": "555-0100",
        "org": "Lee Studio",
        "eventType": "Photo shoot",
        "date": "2026-12-05",
        "startTime": "09:00",
        "endTime": "13:00",
        "durationHours": 4,
        "attendees": 6,
        "totalAmount": "420.00",
        "houseRulesAgreed": True,
        "equipment": ["Projector", "Chairs"],
    }
    data.update(overrides)
    return data


def test_generate_ref_format():
    refs = {generate_ref() for _ in range(50)}
    assert all(re.fullmatch(r"BK-[A-Z0-9]{6}", r) for r in refs)
    assert len(refs) > 1


def test_booking_request_accepts_camel_case_and_builds_pending_row():
    req = BookingRequest.model_validate(_payload())
    row = req.to_row("BK-XYZ789")

    assert row["status"] == "Pending"
    assert row["ref"] == "BK-XYZ789"
    assert row["organization"] == "Lee Studio"
    assert row["equipment"] == "Projector, Chairs"
    assert row["description"] == "(none provided)"
    assert row["total_amount"] == "420.00"


@pytest.mark.parametrize(
    "overrides",
    [
        {"houseRulesAgreed": False},
        {"email": "not-an-email"},
        {"durationHours": 0},
        {"attendees": 0},
        {"totalAmount": "-1"},
        {"firstName": ""},
    ],
)
def test_booking_request_rejects_invalid_input(overrides):
    with pytest.raises(ValidationError):
        BookingRequest.model_validate(_payload(**overrides))


def test_status_parse_defaults_to_pending():
    assert BookingStatus.parse(None) is BookingStatus.PENDING
    assert BookingStatus.parse(" Approved ") is BookingStatus.APPROVED
    with pytest.raises(ValueError):
        BookingStatus.parse("Cancelled")


def test_record_from_row_tolerates_missing_amount():
    record = BookingRecord.from_row({"id": 42, "status": "", "total_amount": None})
    assert record.id == "42"
    assert record.status is BookingStatus.PENDING
    assert record.total_amount == Decimal("0")
    assert record.has_payment_session is False


def test_create_booking_inserts_and_notifies_team_and_customer(ctx, store, notifier):
    req = BookingRequest.model_validate(_payload())
    result = create_booking(req, ctx)

    assert result["ok"] is True
    row = store.rows[result["bookingId"]]
    assert row["status"] == "Pending"
    assert row["ref"] == result["ref"]
    assert [t.kind for t in notifier.to("team@example.com")] == ["team_alert"]
    assert [t.kind for t in notifier.to("dana@example.com")] == ["request_received"]


def test_create_booking_without_team_email_only_notifies_customer(ctx, notifier):
    ctx.settings.team_email = ""
    create_booking(BookingRequest.model_validate(_payload()), ctx)
    assert [t.kind for t in notifier.tasks] == ["request_received"]


def test_get_booking_status_reads_live_value(store):
    booking_id = store.add(status="Pending")
    assert get_booking_status(booking_id, store) == {"status": "Pending", "paymentUrl": None}

    store.rows[booking_id].update(status="Approved", payment_session_url="https://pay/1")
    assert get_booking_status(booking_id, store) == {"status": "Approved", "paymentUrl": "https://pay/1"}


def test_get_booking_status_distinguishes_not_found_from_unavailable(store):
    with pytest.raises(BookingNotFoundError):
        get_booking_status("missing", store)

    store.fail_retrieve = True
    with pytest.raises(StoreUnavailableError):
        get_booking_status("missing", store)
