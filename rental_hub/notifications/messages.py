"""
Contenus des emails (sujet + HTML minimal) sous forme de NotificationTask.
Les valeurs saisies par le client sont échappées avant insertion dans le HTML.
"""
from html import escape
from typing import Optional

from rental_hub.bookings.models import BookingRecord
from rental_hub.notifications.queue import NotificationTask

_WRAP = '<div style="font-family:sans-serif;max-width:600px;margin:0 auto">{}</div>'


def _row(label: str, value) -> str:
    return f'<tr><td style="padding:8px;color:#888;font-size:13px">{escape(label)}</td><td style="padding:8px">{escape(str(value or ""))}</td></tr>'


def _when(b: BookingRecord) -> str:
    return f"{b.date or ''}, {b.start_time or ''}–{b.end_time or ''}"


def team_alert(b: BookingRecord, to: str, dashboard_url: Optional[str] = None) -> NotificationTask:
    name = f"{b.first_name or ''} {b.last_name or ''}".strip()
    rows = "".join([
        _row("Ref", b.ref),
        _row("Name", name),
        _row("Email", b.email),
        _row("Event", b.event_type),
        _row("Date", _when(b)),
        _row("Attendees", b.attendees),
        _row("Amount", f"${b.total_amount}"),
    ])
    link = f'<p><a href="{escape(dashboard_url)}">Review &amp; approve →</a></p>' if dashboard_url else ""
    html = _WRAP.format(
        f'<h2 style="color:#C4572A">New Booking Request</h2><table style="width:100%">{rows}</table>{link}'
        '<p style="color:#888;font-size:12px">Set <strong>status</strong> to <strong>Approved</strong> or '
        '<strong>Denied</strong>; the customer is emailed automatically.</p>'
    )
    return NotificationTask(to, f"New Space Booking Request — {name} ({b.ref})", html, "team_alert", b.ref)


def request_received(b: BookingRecord) -> NotificationTask:
    rows = "".join([_row("Event", b.event_type), _row("Date", _when(b)), _row("Total (if approved)", f"${b.total_amount}")])
    html = _WRAP.format(
        f'<h2 style="color:#C4572A">We\'ve received your request!</h2><p>Hi {escape(b.greeting_name)},</p>'
        f'<p>Your space rental request (<strong>{escape(b.ref)}</strong>) is being reviewed by our team. '
        f'We\'ll respond within 24 hours.</p><table style="width:100%">{rows}</table>'
    )
    return NotificationTask(b.email or "", f"Your booking request is under review — {b.ref}", html, "request_received", b.ref)


def approval_with_payment_link(b: BookingRecord, payment_url: str) -> NotificationTask:
    rows = "".join([_row("Event", b.event_type), _row("Date & Time", _when(b)), _row("Total Due", f"${b.total_amount}")])
    html = _WRAP.format(
        f'<h2 style="color:#4A6741">Your booking has been approved!</h2><p>Hi {escape(b.greeting_name)},</p>'
        f'<p>Your space rental request <strong>{escape(b.ref)}</strong> has been approved. '
        f'Complete payment within 48 hours to secure your spot.</p><table style="width:100%">{rows}</table>'
        f'<a href="{escape(payment_url)}" style="display:inline-block;background:#4A6741;color:white;padding:16px 32px">'
        f'Pay ${escape(str(b.total_amount))} Securely →</a>'
    )
    return NotificationTask(b.email or "", f"Your booking is approved — pay to confirm ({b.ref})", html, "approval", b.ref)


def denial_notice(b: BookingRecord) -> NotificationTask:
    html = _WRAP.format(
        f'<h2 style="color:#8C8580">Booking request update</h2><p>Hi {escape(b.greeting_name)},</p>'
        f'<p>Unfortunately we\'re unable to accommodate your request (<strong>{escape(b.ref)}</strong>) at this time. '
        'You\'re welcome to submit a new request for a different date.</p>'
    )
    return NotificationTask(b.email or "", f"Your booking request — {b.ref}", html, "denial", b.ref)
