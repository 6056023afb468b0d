"""Parcours complets: formulaire -> approbation manuelle -> lien de paiement -> webhook."""
from tests.conftest import completed_event, sign_payload


def _submit(client):
    r = client.post(
        "/api/booking-request",
        json={
            "firstName": "Sam",
            "lastName": "Ortiz",
            "email": "sam@example.com",
            "eventType": "Rehearsal",
            "date": "2026-11-20",
            "startTime": "18:00",
            "endTime": "21:00",
            "durationHours": 3,
            "attendees": 5,
            "totalAmount": "225.50",
            "houseRulesAgreed": True,
        },
    )
    assert r.status_code == 200
    return r.json()["bookingId"]


def test_approval_produces_payment_link_then_payment(client, app, store, gateway, notifier):
    booking_id = _submit(client)
    poller = app.state.poller

    poller.run_cycle()
    assert client.get(f"/api/booking-status/{booking_id}").json() == {"status": "Pending", "paymentUrl": None}

    # Approbation manuelle dans le store
    store.set_status(booking_id, "Approved")
    poller.run_cycle()

    status = client.get(f"/api/booking-status/{booking_id}").json()
    assert status["status"] == "Approved"
    assert status["paymentUrl"] == gateway.sessions[0]["url"]
    assert gateway.sessions[0]["amount_minor"] == 22550
    approvals = [t for t in notifier.to("sam@example.com") if t.kind == "approval"]
    assert len(approvals) == 1

    body = completed_event(booking_id=booking_id, ref=store.rows[booking_id]["ref"], payment_intent="pi_sam")
    r = client.post("/api/stripe-webhook", content=body, headers={"Stripe-Signature": sign_payload(body)})
    assert r.status_code == 200

    final = client.get(f"/api/booking-status/{booking_id}").json()
    assert final["status"] == "Paid"
    # Le poller ne touche plus une réservation payée
    poller.run_cycle()
    assert len(gateway.sessions) == 1


def test_double_delivery_after_payment_is_harmless(client, store):
    booking_id = store.add(status="Approved", payment_session_url="https://pay/x", payment_session_id="cs_x")
    body = completed_event(booking_id=booking_id, payment_intent="pi_dd")
    header = sign_payload(body)

    for _ in range(2):
        r = client.post("/api/stripe-webhook", content=body, headers={"Stripe-Signature": header})
        assert r.status_code == 200

    row = store.rows[booking_id]
    assert row["status"] == "Paid"
    assert row["payment_confirmation_id"] == "pi_dd"
    assert row["payment_session_url"] == "https://pay/x"


def test_denial_sends_single_notice(client, app, store, gateway, notifier):
    booking_id = _submit(client)
    store.set_status(booking_id, "Denied")

    app.state.poller.run_cycle()
    app.state.poller.run_cycle()

    denials = [t for t in notifier.to("sam@example.com") if t.kind == "denial"]
    assert len(denials) == 1
    assert gateway.sessions == []
    assert client.get(f"/api/booking-status/{booking_id}").json()["status"] == "Denied"
