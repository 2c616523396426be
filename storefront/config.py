# storefront.config
from decimal import Decimal
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale du service boutique/dons.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Stripe, Redis)
- Fixe les règles métier du checkout (montants minimum/maximum, devise, durée de session)
- Fournit les chemins de retour du checkout hébergé (succès/annulation)
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _decimal_env(name: str, default: str) -> Decimal:
    """Lit un montant décimal (ex: "0.50"); retombe sur la valeur par défaut si illisible."""
    raw = _clean_env(os.getenv(name) or "") or default
    try:
        return Decimal(raw)
    except Exception:
        return Decimal(default)

def _list_env(name: str, default: str) -> list[str]:
    return [v.strip() for v in os.getenv(name, default).split(",") if v.strip()]

# Supabase: magasin de documents (tables orders / donations)
# - SUPABASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

ORDERS_TABLE = os.getenv("ORDERS_TABLE", "orders")
DONATIONS_TABLE = os.getenv("DONATIONS_TABLE", "donations")

# Stripe: clés et version d'API
STRIPE_PUBLIC_KEY = _clean_env(os.getenv("STRIPE_PUBLIC_KEY") or "")
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_API_VERSION = _clean_env(os.getenv("STRIPE_API_VERSION") or "2024-04-10")

# Cookies / CORS
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")
CORS_ORIGINS = _list_env("CORS_ORIGINS", "http://localhost:3000")

# URLs de retour du checkout hébergé (l'id de corrélation est ajouté en query)
BASE_URL = _clean_env(os.getenv("BASE_URL") or "http://localhost:3000").rstrip("/")
CHECKOUT_SUCCESS_PATH = os.getenv("CHECKOUT_SUCCESS_PATH", "/success")
CHECKOUT_CANCEL_PATH = os.getenv("CHECKOUT_CANCEL_PATH", "/checkout")
DONATION_SUCCESS_PATH = os.getenv("DONATION_SUCCESS_PATH", "/donation-success")
DONATION_CANCEL_PATH = os.getenv("DONATION_CANCEL_PATH", "/donate")
ALLOWED_RETURN_DOMAINS = _list_env("ALLOWED_RETURN_DOMAINS", "localhost,givebackjojo.org")
CHECKOUT_SESSION_TTL_SECONDS = int(os.getenv("CHECKOUT_SESSION_TTL_SECONDS", "1800"))

# Règles métier du checkout
DEFAULT_CURRENCY = _clean_env(os.getenv("DEFAULT_CURRENCY") or "usd").lower()
MIN_ORDER_AMOUNT = _decimal_env("MIN_ORDER_AMOUNT", "0.50")
MIN_DONATION_AMOUNT = _decimal_env("MIN_DONATION_AMOUNT", "1.00")
MAX_DONATION_AMOUNT = _decimal_env("MAX_DONATION_AMOUNT", "50000.00")

# Panier: stockage clé-valeur durable (Redis)
CART_STORAGE_KEY = os.getenv("CART_STORAGE_KEY", "storefront.cart")
CART_REDIS_URL = _clean_env(os.getenv("CART_REDIS_URL") or "redis://127.0.0.1:6379/1")
CART_TTL_SECONDS = int(os.getenv("CART_TTL_SECONDS", str(30 * 24 * 3600)))
CART_COOKIE_NAME = "cart_sid"
