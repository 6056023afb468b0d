# module rental_hub.bookings.views

"""Endpoints de la feature Bookings.
- POST /api/booking-request: reçoit le formulaire, crée la ligne Pending, notifie équipe + client.
- GET /api/booking-status/{booking_id}: le front interroge ce point toutes les 10s
  pour voir si l'équipe a changé le statut (Approved => lien de paiement).
Erreurs:
- 422 payload invalide (pydantic), 404 id inconnu, 503 store indisponible.
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from rental_hub.bookings.models import BookingRequest
from rental_hub.bookings import service as bookings_service
from rental_hub.reconciliation.context import ReconciliationContext, get_context
from rental_hub.utils.rate_limit import optional_rate_limit

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["Bookings API"])


@router.post("/booking-request", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def api_create_booking(req: BookingRequest, ctx: ReconciliationContext = Depends(get_context)):
    """Crée une demande de réservation et renvoie {ok, bookingId, ref}."""
    return JSONResponse(bookings_service.create_booking(req, ctx))


@router.get("/booking-status/{booking_id}")
def api_booking_status(booking_id: str, ctx: ReconciliationContext = Depends(get_context)):
    """Statut courant {status, paymentUrl}, lu en direct dans le store."""
    return JSONResponse(bookings_service.get_booking_status(booking_id, ctx.store))
