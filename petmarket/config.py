# petmarket.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

"""
Configuration centrale du serveur de paiement.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Stripe), CORS/hosts
- Expose la politique de vidage du panier après checkout et la table d'audit des webhooks
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _split_env(v: str) -> list:
    return [x.strip() for x in (v or "").split(",") if x.strip()]

APP_NAME = os.getenv("APP_NAME", "PetMarket Payment Server")
APP_VERSION = os.getenv("APP_VERSION", "2.0.0")
PLATFORM_TAG = _clean_env(os.getenv("PLATFORM_TAG") or "petmarket")

# Supabase: URL et clés (anon pour les requêtes au nom de l'utilisateur, service pour le serveur)
# - SUPABASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_ANON_KEY = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Stripe: clés publiques/privées et secret de signature webhook
STRIPE_PUBLIC_KEY = _clean_env(os.getenv("STRIPE_PUBLIC_KEY") or "")
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")
STRIPE_CURRENCY = _clean_env(os.getenv("STRIPE_CURRENCY") or "usd").lower()

# CORS: liste blanche d'origines (le front est servi séparément)
CORS_ORIGINS = _split_env(os.getenv("ALLOWED_ORIGINS") or "http://localhost:3000,http://127.0.0.1:3000")
ALLOWED_HOSTS = _split_env(os.getenv("ALLOWED_HOSTS") or "*")

# Checkout: "clear_all" vide tout le panier dès qu'une commande est créée,
# "clear_ordered" ne retire que les lignes ayant produit une commande
CHECKOUT_CART_POLICY = _clean_env(os.getenv("CHECKOUT_CART_POLICY") or "clear_all").lower()

# Table d'audit / dead-letter des événements Stripe
PAYMENT_EVENTS_TABLE = _clean_env(os.getenv("PAYMENT_EVENTS_TABLE") or "payment_events")

REQUIRED_SETTINGS = ("SUPABASE_URL", "SUPABASE_SERVICE_KEY", "STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET")

def required_settings_missing() -> list:
    """Retourne les noms des secrets serveur absents (ordre de REQUIRED_SETTINGS)."""
    return [name for name in REQUIRED_SETTINGS if not globals().get(name)]
