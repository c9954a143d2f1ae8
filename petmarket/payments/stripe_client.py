"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
Les objets Stripe sont convertis en dict à la frontière pour que le reste du code
(et les tests) manipule des structures simples.
"""
import json
import logging
from typing import Any, Dict, Optional

import stripe
from fastapi import Request

from petmarket import config
from petmarket.utils.errors import InvalidSignature, UpstreamFailure

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "stripe-signature"

# module petmarket.payments.stripe_client
def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l’emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY.
    - UpstreamFailure si la clé est absente (aucun appel Stripe possible).
    """
    if not config.STRIPE_SECRET_KEY:
        raise UpstreamFailure("STRIPE_SECRET_KEY manquant")
    stripe.api_key = config.STRIPE_SECRET_KEY
    return stripe

def to_plain(obj: Any) -> Dict[str, Any]:
    if obj is None:
        return {}
    if isinstance(obj, dict):
        return dict(obj)
    for attr in ("to_dict", "to_dict_recursive"):
        fn = getattr(obj, attr, None)
        if callable(fn):
            return fn()
    return {}

def field(obj: Any, name: str, default: Any = None) -> Any:
    """Lit un champ sur un dict ou un objet Stripe."""
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)

def to_minor_units(amount: float) -> int:
    """Montant en centimes, arrondi à l'entier le plus proche."""
    return int(round(float(amount) * 100))

def _error_message(e: Exception, fallback: str) -> str:
    return getattr(e, "user_message", None) or fallback

def create_payment_intent(
    *,
    amount_minor: int,
    currency: str,
    metadata: Dict[str, str],
    description: str,
) -> Dict[str, Any]:
    """
    Crée un PaymentIntent Stripe.
    - amount_minor: montant en unités mineures (centimes)
    - metadata: {"orderIds": "<id>,<id>", "buyerId": "...", "platform": "..."}
    Retour: {"id", "client_secret", "amount", "currency", "status", "metadata"}
    """
    require_stripe()
    try:
        intent = stripe.PaymentIntent.create(
            amount=amount_minor,
            currency=currency,
            automatic_payment_methods={"enabled": True},
            metadata=metadata,
            description=description,
        )
    except Exception as e:
        logger.exception("payments.stripe_client.create_payment_intent failed amount=%s", amount_minor)
        raise UpstreamFailure(_error_message(e, "Impossible de créer le paiement"))
    return {
        "id": field(intent, "id"),
        "client_secret": field(intent, "client_secret"),
        "amount": field(intent, "amount"),
        "currency": field(intent, "currency"),
        "status": field(intent, "status"),
        "metadata": to_plain(field(intent, "metadata")),
    }

def retrieve_payment_intent(payment_intent_id: str) -> Dict[str, Any]:
    """Relit un PaymentIntent (statut + métadonnées) pour la confirmation côté client."""
    require_stripe()
    try:
        intent = stripe.PaymentIntent.retrieve(payment_intent_id)
    except Exception as e:
        logger.exception("payments.stripe_client.retrieve_payment_intent failed id=%s", payment_intent_id)
        raise UpstreamFailure(_error_message(e, "Paiement introuvable"))
    return {
        "id": field(intent, "id"),
        "status": field(intent, "status"),
        "amount": field(intent, "amount"),
        "metadata": to_plain(field(intent, "metadata")),
    }

def retrieve_account() -> Dict[str, Any]:
    """Informations du compte Stripe (test de connectivité)."""
    require_stripe()
    account = stripe.Account.retrieve()
    return {
        "id": field(account, "id"),
        "country": field(account, "country"),
        "currency": field(account, "default_currency"),
        "email": field(account, "email"),
    }

def verify_event(payload: bytes, sig_header: Optional[str]) -> Dict[str, Any]:
    """
    Valide la signature Stripe AVANT toute interprétation du corps, puis décode l'événement.
    - Refuse si le secret n'est pas configuré, si l'en-tête manque ou si la signature est fausse.
    """
    secret = config.STRIPE_WEBHOOK_SECRET
    if not secret:
        raise InvalidSignature("STRIPE_WEBHOOK_SECRET non configuré")
    if not sig_header:
        raise InvalidSignature("En-tête Stripe-Signature manquant")
    try:
        text = payload.decode("utf-8")
        stripe.WebhookSignature.verify_header(text, sig_header, secret, tolerance=stripe.Webhook.DEFAULT_TOLERANCE)
    except Exception as e:
        logger.warning("payments.stripe_client.verify_event signature rejected: %s", e)
        raise InvalidSignature(f"Webhook Error: {e}")
    try:
        event = json.loads(text)
    except ValueError:
        raise InvalidSignature("Payload webhook invalide")
    if not isinstance(event, dict):
        raise InvalidSignature("Payload webhook invalide")
    return event

async def parse_event(request: Request) -> Dict[str, Any]:
    """
    Parse et valide un événement Stripe signé (webhook).
    - Lit le body brut + en-tête Stripe-Signature
    Retour: l’événement (dict) si la signature est valide.
    """
    payload = await request.body()
    return verify_event(payload, request.headers.get(SIGNATURE_HEADER))
