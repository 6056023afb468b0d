"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
- create_session: session Checkout pour une réservation approuvée.
- verify_and_parse: vérifie la signature d'un webhook sur le body brut, puis parse le JSON.
- StripeGateway: regroupe ces appels avec leurs secrets (injecté dans le contexte de réconciliation).
"""
import json
from typing import Any, Dict, Optional

import stripe

from rental_hub.config import STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET
from rental_hub.exceptions import PaymentProcessorError, WebhookSignatureError

# module rental_hub.payments.stripe_client
def require_stripe(api_key: Optional[str] = None):
    """
    Prépare et retourne le module stripe prêt à l'emploi.
    - Configure stripe.api_key via la clé fournie ou STRIPE_SECRET_KEY.
    - En absence de clé, les appels Stripe échoueront côté SDK (ex: No API key provided).
    """
    key = api_key or STRIPE_SECRET_KEY
    if key:
        stripe.api_key = key
    return stripe

def create_session(
    *,
    amount_minor: int,
    currency: str,
    product_name: str,
    description: str,
    metadata: Dict[str, str],
    success_url: str,
    cancel_url: str,
    customer_email: str,
    api_key: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Crée une session Stripe Checkout (une ligne, quantité 1).
    Retour: {"id": "cs_test_...", "url": "https://checkout.stripe.com/..."}
    Erreur Stripe => PaymentProcessorError.
    """
    require_stripe(api_key)
    try:
        session = stripe.checkout.Session.create(
            mode="payment",
            payment_method_types=["card"],
            line_items=[
                {
                    "price_data": {
                        "currency": currency,
                        "unit_amount": amount_minor,
                        "product_data": {
                            "name": product_name,
                            "description": description,
                        },
                    },
                    "quantity": 1,
                }
            ],
            customer_email=customer_email,
            metadata=metadata,
            success_url=success_url,
            cancel_url=cancel_url,
        )
    except stripe.StripeError as e:
        raise PaymentProcessorError(f"Création de la session Stripe impossible: {e}") from e
    return {"id": session.id, "url": session.url}

def verify_and_parse(raw_body: bytes, signature_header: Optional[str], secret: Optional[str] = None) -> Dict[str, Any]:
    """
    Valide un événement Stripe signé (webhook) et le retourne en dict.
    - La signature est recalculée sur les octets exacts du body (aucun re-encodage JSON).
    - Signature absente/invalide, secret manquant ou JSON illisible => WebhookSignatureError.
    """
    webhook_secret = secret if secret is not None else STRIPE_WEBHOOK_SECRET
    if not signature_header or not webhook_secret:
        raise WebhookSignatureError("Missing Stripe signature or webhook secret")
    try:
        payload = raw_body.decode("utf-8") if isinstance(raw_body, (bytes, bytearray)) else raw_body
        stripe.WebhookSignature.verify_header(
            payload, signature_header, webhook_secret, tolerance=stripe.Webhook.DEFAULT_TOLERANCE
        )
        event = json.loads(payload)
    except (stripe.SignatureVerificationError, ValueError) as e:
        raise WebhookSignatureError(f"Invalid Stripe webhook: {e}") from e
    if not isinstance(event, dict):
        raise WebhookSignatureError("Invalid Stripe webhook payload")
    return event


class StripeGateway:
    """Processeur de paiement Stripe, configuré explicitement (clé API + secret webhook)."""

    def __init__(self, api_key: str = STRIPE_SECRET_KEY, webhook_secret: str = STRIPE_WEBHOOK_SECRET):
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def create_session(self, **kwargs) -> Dict[str, Any]:
        return create_session(api_key=self.api_key, **kwargs)

    def verify_and_parse(self, raw_body: bytes, signature_header: Optional[str]) -> Dict[str, Any]:
        return verify_and_parse(raw_body, signature_header, self.webhook_secret)
