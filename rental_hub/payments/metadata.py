"""
Métadonnées de corrélation Stripe (booking_id, ref).
Embarquées dans la session Checkout, relues dans le webhook pour retrouver la réservation.
"""
from typing import Any, Dict, Optional, Tuple

# module rental_hub.payments.metadata
def make_metadata(booking_id: str, ref: str) -> Dict[str, str]:
    return {"booking_id": str(booking_id), "ref": ref or ""}

def extract_metadata(event: Dict[str, Any]) -> Tuple[Optional[str], str]:
    """
    Extrait (booking_id, ref) depuis un event Stripe (webhook).
    - Attend event.data.object.metadata.{booking_id, ref}
    - Tolérant: retourne (None, "") si la structure est absente.
    """
    data_obj = (event or {}).get("data", {}).get("object", {}) if isinstance(event, dict) else {}
    meta = (data_obj or {}).get("metadata") or {}
    booking_id = meta.get("booking_id") or None
    return booking_id, meta.get("ref") or ""

def extract_payment_id(event: Dict[str, Any]) -> str:
    """Identifiant de confirmation du paiement (payment_intent de la session)."""
    data_obj = (event or {}).get("data", {}).get("object", {}) if isinstance(event, dict) else {}
    payment_intent = (data_obj or {}).get("payment_intent")
    if isinstance(payment_intent, dict):
        payment_intent = payment_intent.get("id")
    return str(payment_intent or "")
