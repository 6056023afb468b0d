"""
Cas d'usage 'payments': orchestre store, Stripe, métadonnées et notifications.
- initiate_payment_session: réservation Approved => session Checkout + écriture du lien.
- finalize_payment_event: webhook vérifié => statut Paid + id de confirmation.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict
import logging

from rental_hub.bookings.models import BookingRecord, BookingStatus
from rental_hub.exceptions import BookingValidationError
from rental_hub.notifications import messages
from rental_hub.payments import metadata as meta

logger = logging.getLogger(__name__)

COMPLETED_EVENT = "checkout.session.completed"

# Seules ces lignes peuvent passer à Paid (Denied est terminal, Pending n'a pas de session)
PAYABLE_STATUSES = (BookingStatus.APPROVED, BookingStatus.PAID)

def amount_to_minor_units(amount) -> int:
    """
    Montant décimal => centimes entiers, arrondi au plus proche (demi vers le haut).
    Passe par str() pour éviter les artefacts binaires des float (19.995 => 2000).
    """
    value = Decimal(str(amount)) * 100
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def initiate_payment_session(record: BookingRecord, ctx) -> Dict[str, Any]:
    """
    Crée la session Stripe d'une réservation approuvée et écrit le lien sur la ligne.
    - Pré-conditions: statut Approved, email présent, montant > 0.
    - Écriture partielle: payment_session_url + payment_session_id uniquement (jamais status).
    - Après écriture: email d'approbation avec le lien (file de notifications, best effort).
    Les erreurs Stripe/Supabase remontent au poller (journalisées, pas de retry automatique).
    """
    if record.status != BookingStatus.APPROVED:
        raise BookingValidationError(f"Réservation {record.ref} non approuvée (status={record.status.value})")
    if not record.email:
        raise BookingValidationError(f"Réservation {record.ref} sans email de contact")
    amount_minor = amount_to_minor_units(record.total_amount)
    if amount_minor <= 0:
        raise BookingValidationError(f"Réservation {record.ref} sans montant à payer")

    settings = ctx.settings
    session = ctx.processor.create_session(
        amount_minor=amount_minor,
        currency=settings.currency,
        product_name=f"Space Rental — {record.event_type or 'Booking'}",
        description=f"{record.date or ''}, {record.start_time or ''}–{record.end_time or ''} | Ref: {record.ref}",
        metadata=meta.make_metadata(record.id, record.ref),
        success_url=settings.success_url(record.ref),
        cancel_url=settings.cancel_url(),
        customer_email=record.email,
    )
    session_url = session.get("url") or ""
    session_id = session.get("id") or ""

    ctx.store.update(record.id, {"payment_session_url": session_url, "payment_session_id": session_id})
    logger.info("payments.session_created ref=%s booking_id=%s session_id=%s amount=%s", record.ref, record.id, session_id, amount_minor)

    ctx.notifier.enqueue(messages.approval_with_payment_link(record, session_url))
    return {"sessionUrl": session_url, "sessionId": session_id}

def finalize_payment_event(event: Dict[str, Any], store) -> Dict[str, Any]:
    """
    Applique un événement Stripe déjà vérifié.
    - checkout.session.completed + metadata.booking_id: status=Paid et
      payment_confirmation_id=payment_intent (dernière écriture, pas d'accumulation),
      seulement si la ligne est Approved ou déjà Paid. Rejouer l'événement réécrit
      les mêmes valeurs: aucun effet supplémentaire.
    - Autre type ou metadata absente: accusé de réception sans mutation.
    Retour: {"received": True, "status": "processed"|"ignored"|"noop"}
    """
    if (event or {}).get("type") != COMPLETED_EVENT:
        return {"received": True, "status": "ignored"}

    booking_id, ref = meta.extract_metadata(event)
    if not booking_id:
        logger.info("payments.webhook ignored event_id=%s reason=no_metadata", (event or {}).get("id"))
        return {"received": True, "status": "ignored"}

    payment_id = meta.extract_payment_id(event)
    updated = store.update(
        booking_id,
        {"status": BookingStatus.PAID.value, "payment_confirmation_id": payment_id},
        only_if_status=PAYABLE_STATUSES,
    )
    if updated is None:
        logger.warning("payments.webhook noop booking_id=%s ref=%s reason=not_payable_or_unknown", booking_id, ref)
        return {"received": True, "status": "noop"}

    logger.info("payments.webhook paid booking_id=%s ref=%s payment_id=%s", booking_id, ref, payment_id)
    return {"received": True, "status": "processed"}
