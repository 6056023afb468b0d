"""
Gestionnaires d'exceptions utilisés par la factory.
- RentalHubError et sous-classes: code HTTP porté par l'exception, body {"detail", "code"}.
- HTTPException: JSON standard FastAPI {"detail": ...}.
"""
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from rental_hub.exceptions import IntegrationError, InvalidBookingRecordError, RentalHubError

logger = logging.getLogger(__name__)

def register_exception_handlers(app: FastAPI) -> None:
    """
    Enregistre les handlers métier.
    - 4xx: erreurs client (validation, id inconnu, signature webhook).
    - 5xx: intégrations (Supabase 503, Stripe 502), journalisées.
    """
    @app.exception_handler(RentalHubError)
    async def rental_hub_error(request: Request, exc: RentalHubError):
        if isinstance(exc, IntegrationError):
            logger.error("integration error path=%s code=%s: %s", request.url.path, exc.code, exc.message)
        elif isinstance(exc, InvalidBookingRecordError):
            logger.error("invalid record path=%s booking_id=%s: %s", request.url.path, exc.booking_id, exc.reason)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))
