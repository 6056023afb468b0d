"""
Lifespan FastAPI: initialisation/arrêt des ressources partagées.
- Initialise FastAPILimiter (Redis) avec options de test (fakeredis).
- Construit le contexte de réconciliation (store, Stripe, emails, guard) sauf s'il
  est déjà posé sur app.state (tests).
- Démarre le poller de statuts en tâche de fond; à l'arrêt la tâche est annulée
  sans drain (les appels externes en cours sont abandonnés).
Variables d'environnement supportées:
  - DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1: désactive le rate limiting (tests)
  - USE_FAKE_REDIS_FOR_TESTS=1: utilise fakeredis (tests)
  - LOCAL_RATE_LIMIT_FALLBACK=1: active un fallback local si l'init échoue
  - DISABLE_POLLER_FOR_TESTS=1: ne démarre pas le poller (tests)
"""
import asyncio
import contextlib
import os
import logging
import redis.asyncio as aioredis
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter

from rental_hub import config
from rental_hub.reconciliation.context import build_context
from rental_hub.reconciliation.poller import StatusPoller

logger = logging.getLogger("uvicorn.error")

async def _init_rate_limiter(app: FastAPI) -> None:
    """
    Configure le rate limiting et gère les fallbacks.
    - En cas d'échec de Redis et sans fallback, le rate limiting est désactivé proprement.
    """
    if os.getenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS") == "1":
        app.state.rate_limit_enabled = False
        logger.info("Rate limiting disabled by DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS")
        return
    try:
        if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
            from fakeredis.aioredis import FakeRedis  # tests only
            r = FakeRedis(decode_responses=True)
        else:
            redis_url = os.getenv("RATE_LIMIT_REDIS_URL", "redis://127.0.0.1:6379/0")
            r = aioredis.from_url(redis_url, encoding="utf-8", decode_responses=True)

        await FastAPILimiter.init(r)
        app.state.rate_limit_enabled = True
        logger.info("Rate limiting enabled")
    except Exception as e:
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            app.state.rate_limit_enabled = True
            logger.warning(f"Rate limiting falling back to local in-memory due to init error: {e}")
        else:
            app.state.rate_limit_enabled = False
            logger.warning(f"Rate limiting disabled due to init error: {e}")

@asynccontextmanager
async def lifespan(app: FastAPI):
    await _init_rate_limiter(app)

    ctx = getattr(app.state, "reconciliation", None)
    if ctx is None:
        ctx = build_context()
        app.state.reconciliation = ctx
    poller = StatusPoller(ctx)
    app.state.poller = poller

    task = None
    if config.POLLER_ENABLED and os.getenv("DISABLE_POLLER_FOR_TESTS") != "1":
        task = asyncio.create_task(poller.run_forever())
        logger.info(f"Watching store for approvals every {ctx.settings.poll_interval}s")
    else:
        logger.info("Status poller disabled")
    app.state.poller_task = task

    try:
        yield
    finally:
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        app.state.poller_task = None
        shutdown = getattr(ctx.notifier, "shutdown", None)
        if callable(shutdown):
            shutdown()
