import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from petmarket import config
from petmarket.utils.security import require_user
from petmarket.utils.rate_limit import optional_rate_limit
from petmarket.utils.dependencies import get_service_client
from petmarket.utils.errors import InvalidOrders, UpstreamFailure

from petmarket.payments import stripe_client
from petmarket.payments import service as payments_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/stripe", tags=["Payments API"])

# module petmarket.payments.views
@router.post("/create-payment-intent", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_payment_intent(request: Request, user: Dict[str, Any] = Depends(require_user), client=Depends(get_service_client)):
    """
    Crée un PaymentIntent pour des commandes 'pending' de l’utilisateur authentifié.
    - Entrée JSON: { "orderIds": ["<order_id>", ...] }
    - Sécurité: require_user + rate limit (10 req / 60s); la propriété est revérifiée avec le client service
    - Réponse: { clientSecret, paymentIntentId, amount: "12.34", orderCount }
    - Erreurs: 400 si liste vide/invalide, commandes introuvables ou montant nul; 500 si Stripe échoue
    """
    try:
        body = await request.json()
    except Exception:
        body = None
    order_ids = body.get("orderIds") if isinstance(body, dict) else None
    if not isinstance(order_ids, list) or not order_ids:
        raise InvalidOrders("Veuillez fournir un tableau d'identifiants de commande")
    return await run_in_threadpool(payments_service.create_payment_intent_for_orders, client, user, order_ids)

@router.post("/webhook", include_in_schema=False)
async def webhook_stripe(request: Request, client=Depends(get_service_client)):
    """
    Webhook Stripe (PaymentIntent): système de référence pour « payé ».
    - Signature: valide via stripe_client.parse_event (Stripe-Signature + STRIPE_WEBHOOK_SECRET), 400 sinon
    - payment_intent.succeeded: commandes -> paid puis décrément de stock une seule fois par commande
    - payment_intent.payment_failed: journalisé, commandes laissées 'pending'
    - Réponse: toujours {"received": true} une fois la signature acceptée
    """
    event = await stripe_client.parse_event(request)
    result = await run_in_threadpool(payments_service.handle_webhook_event, client, event)
    logger.info("payments.webhook type=%s id=%s status=%s", event.get("type"), event.get("id"), result.get("status"))
    return {"received": True}

@router.get("/test")
def stripe_test():
    """Vérifie la connectivité Stripe (compte associé à la clé secrète)."""
    try:
        account = stripe_client.retrieve_account()
    except UpstreamFailure:
        raise
    except Exception as e:
        logger.exception("Erreur stripe_test")
        raise UpstreamFailure(f"Stripe injoignable: {e}")
    return {
        "status": "ok",
        "message": "Stripe is connected",
        "account": account,
        "currency": config.STRIPE_CURRENCY,
        "publicKeyConfigured": bool(config.STRIPE_PUBLIC_KEY),
    }
