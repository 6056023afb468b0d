import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from rental_hub.payments import service as payments_service
from rental_hub.reconciliation.context import ReconciliationContext, get_context

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["Payments API"])

# module rental_hub.payments.views
@router.post("/stripe-webhook", include_in_schema=False)
async def stripe_webhook(request: Request, ctx: ReconciliationContext = Depends(get_context)):
    """
    Webhook Stripe: checkout.session.completed => réservation Paid.
    - Signature: vérifiée sur le body brut (Stripe-Signature + STRIPE_WEBHOOK_SECRET);
      échec => 400 via WebhookSignatureError, aucune écriture.
    - Application: payments_service.finalize_payment_event (idempotent sous redélivrance).
    - Réponses: {"received": true, "status": "processed"|"ignored"|"noop"}
    - Store indisponible => 503, Stripe redélivrera l'événement.
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    event = ctx.processor.verify_and_parse(payload, sig_header)
    result = await run_in_threadpool(payments_service.finalize_payment_event, event, ctx.store)
    logger.info("payments.webhook event_id=%s type=%s status=%s", event.get("id"), event.get("type"), result.get("status"))
    return JSONResponse(result)
