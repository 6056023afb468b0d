"""
ASGI entrypoint: expose `app` pour les process managers / déploiements.

- En production, un process manager (ex: gunicorn + uvicorn workers) importe `rental_hub.asgi:app`.
- Un seul worker: le poller et la mémoire d'idempotence vivent dans le process
  (plusieurs workers => plusieurs pollers concurrents).
"""

from rental_hub.app import app

if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(
        "rental_hub.asgi:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "3001")),
        reload=True,
    )
