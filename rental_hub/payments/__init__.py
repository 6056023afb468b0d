"""
Module 'payments' (feature-first): point d'entrée public.
Réunit client Stripe, métadonnées de corrélation et cas d'usage (session, webhook).
"""

from .metadata import make_metadata, extract_metadata, extract_payment_id
from .stripe_client import require_stripe, create_session, verify_and_parse, StripeGateway
from .service import amount_to_minor_units, initiate_payment_session, finalize_payment_event

__all__ = [
    # metadata
    "make_metadata",
    "extract_metadata",
    "extract_payment_id",
    # stripe
    "require_stripe",
    "create_session",
    "verify_and_parse",
    "StripeGateway",
    # services
    "amount_to_minor_units",
    "initiate_payment_session",
    "finalize_payment_event",
]
