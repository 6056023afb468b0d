"""
Factory d'application pour les entrypoints (ex: rental_hub.asgi).
Ordonne les étapes d'initialisation de manière lisible et testable.
"""
import logging
from fastapi import FastAPI
from rental_hub.config import LOG_LEVEL
from .lifespan import lifespan
from .middlewares import register_basic_middlewares
from .exceptions import register_exception_handlers
from .routers import register_routers

def configure_logging(level: str = LOG_LEVEL) -> None:
    """Niveau racine depuis LOG_LEVEL; uvicorn garde ses propres handlers."""
    logging.basicConfig(
        level=getattr(logging, (level or "info").upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

def create_app() -> FastAPI:
    """
    Construit l'app FastAPI avec le lifespan et enregistre:
      - middlewares de base (CORS)
      - gestionnaires d'exceptions métier
      - routers (bookings, payments, reconciliation, health)
    """
    configure_logging()
    app = FastAPI(title="Space Rental Booking Backend", lifespan=lifespan)
    register_basic_middlewares(app)
    register_exception_handlers(app)
    register_routers(app)
    return app
