"""Couche service de la feature Bookings.
Rôles:
- Créer une demande de réservation (ligne Pending + emails équipe/client).
- Lire le statut courant d'une réservation pour le front (lecture directe, sans cache).
"""
import logging
import secrets
import string
from typing import Any, Dict, Optional

from rental_hub.bookings.models import BookingRequest
from rental_hub.notifications import messages

logger = logging.getLogger(__name__)

REF_PREFIX = "BK-"
_REF_ALPHABET = string.ascii_uppercase + string.digits

def generate_ref(length: int = 6) -> str:
    """Référence lisible pour le client, ex: BK-7QX2LM."""
    return REF_PREFIX + "".join(secrets.choice(_REF_ALPHABET) for _ in range(length))

def create_booking(req: BookingRequest, ctx, team_email: Optional[str] = None) -> Dict[str, Any]:
    """
    Insère la demande (statut Pending) puis notifie l'équipe et le client.
    - Les emails sont mis en file (best effort): un échec d'envoi n'annule pas la demande.
    - Une erreur du store remonte (StoreUnavailableError => 503).
    Retour: {"ok": True, "bookingId": <id>, "ref": <ref>}
    """
    ref = generate_ref()
    record = ctx.store.create(req.to_row(ref))
    logger.info("bookings.created ref=%s booking_id=%s", ref, record.id)

    team = team_email if team_email is not None else ctx.settings.team_email
    if team:
        ctx.notifier.enqueue(messages.team_alert(record, team, ctx.settings.dashboard_url or None))
    ctx.notifier.enqueue(messages.request_received(record))
    return {"ok": True, "bookingId": record.id, "ref": record.ref or ref}

def get_booking_status(booking_id: str, store) -> Dict[str, Any]:
    """
    Statut courant + lien de paiement, lus en direct dans le store.
    - Id inconnu => BookingNotFoundError (jamais un Pending par défaut).
    - Store injoignable => StoreUnavailableError.
    """
    record = store.retrieve(booking_id)
    return {"status": record.status.value, "paymentUrl": record.payment_session_url or None}
