# rental_hub.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale du backend de réservation.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Stripe, SMTP)
- Expose les réglages de la réconciliation (intervalle du poller, ledger)
- Fournit les URLs de redirection du checkout (FRONTEND_URL)
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _env_flag(name: str, default: str = "false") -> bool:
    return _clean_env(os.getenv(name, default)).lower() in ("1", "true", "yes")

def _env_int(name: str, default: int) -> int:
    raw = _clean_env(os.getenv(name) or "")
    try:
        return int(raw) if raw else default
    except ValueError:
        return default

def _env_float(name: str, default: float) -> float:
    raw = _clean_env(os.getenv(name) or "")
    try:
        return float(raw) if raw else default
    except ValueError:
        return default

# Supabase: store des réservations (table éditée à la main par l'équipe)
# - SUPABASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

BOOKINGS_TABLE = _clean_env(os.getenv("BOOKINGS_TABLE") or "bookings")

# Ledger des dispatchs: "memory" (durée de vie du process) ou "supabase" (persistant)
DISPATCH_LEDGER = _clean_env(os.getenv("DISPATCH_LEDGER") or "memory").lower()
LEDGER_TABLE = _clean_env(os.getenv("LEDGER_TABLE") or "dispatch_ledger")

# Stripe: clé privée et secret webhook
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")
PAYMENT_CURRENCY = _clean_env(os.getenv("PAYMENT_CURRENCY") or "usd").lower()

# Front: base des URLs de succès/annulation du checkout
FRONTEND_URL = _clean_env(os.getenv("FRONTEND_URL") or "http://localhost:3000").rstrip("/")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", FRONTEND_URL or "*").split(",") if o.strip()]

# Poller de statuts
POLL_INTERVAL_SECONDS = _env_float("POLL_INTERVAL_SECONDS", 15.0)
POLLER_ENABLED = _env_flag("POLLER_ENABLED", "true")

# Emails (SMTP). Sans SMTP_HOST, les emails sont seulement journalisés.
SMTP_HOST = _clean_env(os.getenv("SMTP_HOST") or "")
SMTP_PORT = _env_int("SMTP_PORT", 587)
SMTP_USER = _clean_env(os.getenv("SMTP_USER") or "")
SMTP_PASS = _clean_env(os.getenv("SMTP_PASS") or "")
SMTP_TIMEOUT = _env_float("SMTP_TIMEOUT", 30.0)
FROM_EMAIL = _clean_env(os.getenv("FROM_EMAIL") or "bookings@example.com")
TEAM_EMAIL = _clean_env(os.getenv("TEAM_EMAIL") or "")
NOTIFY_MAX_ATTEMPTS = _env_int("NOTIFY_MAX_ATTEMPTS", 3)

# Lien vers la ligne dans l'éditeur Supabase (email équipe). Vide => pas de lien.
STORE_DASHBOARD_URL = _clean_env(os.getenv("STORE_DASHBOARD_URL") or "")

# Endpoints d'administration de la réconciliation. Vide => désactivés (403).
RECONCILIATION_ADMIN_TOKEN = _clean_env(os.getenv("RECONCILIATION_ADMIN_TOKEN") or "")

LOG_LEVEL = _clean_env(os.getenv("LOG_LEVEL") or "info")
