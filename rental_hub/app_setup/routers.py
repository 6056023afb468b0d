"""
Registre central des routers.
- API: bookings (formulaire + statut), payments (webhook Stripe)
- Exploitation: reconciliation (statut du poller, reprise manuelle)
- Health: health_router
"""
from fastapi import FastAPI
from rental_hub.bookings import views as bookings_views
from rental_hub.payments import views as payments_views
from rental_hub.reconciliation import views as reconciliation_views
from rental_hub.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    app.include_router(bookings_views.router)
    app.include_router(payments_views.router)
    app.include_router(reconciliation_views.router)
    app.include_router(health_router)
