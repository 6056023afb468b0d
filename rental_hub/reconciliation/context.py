"""
Contexte de réconciliation: clients externes et réglages passés explicitement
(store, processeur de paiement, file de notifications, garde d'idempotence).
Construit une fois dans le lifespan, remplaçable par des fakes en tests.
"""
from dataclasses import dataclass, field
from typing import Any, Optional

from fastapi import Request

from rental_hub import config


@dataclass
class ReconciliationSettings:
    poll_interval: float = config.POLL_INTERVAL_SECONDS
    currency: str = config.PAYMENT_CURRENCY
    frontend_url: str = config.FRONTEND_URL
    team_email: str = config.TEAM_EMAIL
    dashboard_url: str = config.STORE_DASHBOARD_URL

    def success_url(self, ref: str) -> str:
        return f"{self.frontend_url}/booking-confirmed?ref={ref}"

    def cancel_url(self) -> str:
        return f"{self.frontend_url}/booking-cancelled"


@dataclass
class ReconciliationContext:
    store: Any
    processor: Any
    notifier: Any
    guard: Any
    settings: ReconciliationSettings = field(default_factory=ReconciliationSettings)


def build_context(settings: Optional[ReconciliationSettings] = None) -> ReconciliationContext:
    """Assemble les clients réels à partir de rental_hub.config."""
    from rental_hub.bookings.repository import SupabaseBookingStore
    from rental_hub.notifications.mailer import build_mailer
    from rental_hub.notifications.queue import NotificationQueue
    from rental_hub.payments.stripe_client import StripeGateway
    from rental_hub.reconciliation.guard import build_guard

    return ReconciliationContext(
        store=SupabaseBookingStore(),
        processor=StripeGateway(),
        notifier=NotificationQueue(build_mailer()),
        guard=build_guard(config.DISPATCH_LEDGER),
        settings=settings or ReconciliationSettings(),
    )


def get_context(request: Request) -> ReconciliationContext:
    """Dépendance FastAPI: contexte posé sur app.state par le lifespan."""
    ctx = getattr(request.app.state, "reconciliation", None)
    if ctx is None:
        raise RuntimeError("Contexte de réconciliation non initialisé (lifespan)")
    return ctx
