from fastapi import APIRouter, Request
from rental_hub.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root(request: Request):
    poller = getattr(request.app.state, "poller", None)
    report = poller.last_report if poller else None
    return {
        "ok": True,
        "poller": {
            "enabled": bool(getattr(request.app.state, "poller_task", None)),
            "last_cycle_at": report.started_at if report else None,
            "last_cycle_error": report.error if report else None,
        },
    }

@router.get("/rate-limit")
def health_rate_limit(request: Request):
    return rate_limit_health_info(request)
