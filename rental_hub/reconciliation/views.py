"""
Endpoints d'exploitation de la réconciliation (reprise manuelle).
- GET /api/v1/reconciliation/status: dernier cycle, réservations en échec, intervalle.
- POST /api/v1/reconciliation/release/{booking_id}: oublie la réservation dans le guard;
  le prochain cycle pourra la redispatcher (si elle n'a toujours pas de lien de paiement).
Sécurité: en-tête X-Admin-Token comparé à RECONCILIATION_ADMIN_TOKEN (403 si absent/invalide,
ou si aucun jeton n'est configuré).
"""
import logging
import secrets

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from rental_hub import config
from rental_hub.reconciliation.context import ReconciliationContext, get_context

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/reconciliation", tags=["Reconciliation"])


def require_admin_token(x_admin_token: str = Header(default="")) -> None:
    expected = config.RECONCILIATION_ADMIN_TOKEN
    if not expected or not x_admin_token or not secrets.compare_digest(x_admin_token, expected):
        raise HTTPException(status_code=403, detail="Accès interdit")


@router.get("/status", dependencies=[Depends(require_admin_token)])
def reconciliation_status(request: Request, ctx: ReconciliationContext = Depends(get_context)):
    poller = getattr(request.app.state, "poller", None)
    report = poller.last_report if poller else None
    return {
        "interval": ctx.settings.poll_interval,
        "running": bool(poller and poller.running),
        "skipped_ticks": poller.skipped_ticks if poller else 0,
        "processed": len(ctx.guard),
        "failed": ctx.guard.failures(),
        "last_cycle": report.as_dict() if report else None,
    }


@router.post("/release/{booking_id}", dependencies=[Depends(require_admin_token)])
def reconciliation_release(booking_id: str, ctx: ReconciliationContext = Depends(get_context)):
    released = ctx.guard.release(booking_id)
    logger.info("reconciliation.release booking_id=%s released=%s", booking_id, released)
    return {"booking_id": booking_id, "released": released}
