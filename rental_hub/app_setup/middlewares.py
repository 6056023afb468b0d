"""
Middlewares transverses de l'application.
- register_basic_middlewares: CORS pour le front (FRONTEND_URL / CORS_ORIGINS).
Le webhook Stripe n'est soumis à aucune transformation du body (signature sur octets bruts).
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from rental_hub.config import CORS_ORIGINS

def register_basic_middlewares(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials="*" not in CORS_ORIGINS,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
