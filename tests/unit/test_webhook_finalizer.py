import json

from rental_hub.payments.service import finalize_payment_event
from tests.conftest import completed_event


def _event(**kw):
    return json.loads(completed_event(**kw))


def test_completed_event_marks_record_paid(store):
    booking_id = store.add(status="Approved", payment_session_url="https://pay/x", payment_session_id="cs_1")

    result = finalize_payment_event(_event(booking_id=booking_id, payment_intent="pi_abc"), store)

    assert result == {"received": True, "status": "processed"}
    row = store.rows[booking_id]
    assert row["status"] == "Paid"
    assert row["payment_confirmation_id"] == "pi_abc"
    # Les champs de session ne sont pas touchés
    assert row["payment_session_url"] == "https://pay/x"
    assert store.updates == [(booking_id, {"status": "Paid", "payment_confirmation_id": "pi_abc"})]


def test_replayed_event_is_a_noop_in_effect(store):
    booking_id = store.add(status="Approved")
    event = _event(booking_id=booking_id, payment_intent="pi_dup")

    finalize_payment_event(event, store)
    snapshot = dict(store.rows[booking_id])
    second = finalize_payment_event(event, store)

    assert second["status"] == "processed"
    assert store.rows[booking_id] == snapshot
    assert store.rows[booking_id]["payment_confirmation_id"] == "pi_dup"


def test_event_without_metadata_is_acknowledged_without_mutation(store):
    store.add(status="Approved")
    result = finalize_payment_event(_event(booking_id=None), store)
    assert result == {"received": True, "status": "ignored"}
    assert store.updates == []


def test_other_event_types_are_ignored(store):
    booking_id = store.add(status="Approved")
    event = _event(booking_id=booking_id)
    event["type"] = "checkout.session.expired"
    assert finalize_payment_event(event, store)["status"] == "ignored"
    assert store.updates == []


def test_denied_record_never_becomes_paid(store):
    booking_id = store.add(status="Denied")
    result = finalize_payment_event(_event(booking_id=booking_id), store)
    assert result["status"] == "noop"
    assert store.rows[booking_id]["status"] == "Denied"


def test_unknown_record_is_acknowledged(store):
    result = finalize_payment_event(_event(booking_id="does-not-exist"), store)
    assert result == {"received": True, "status": "noop"}
