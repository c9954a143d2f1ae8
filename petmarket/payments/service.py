"""
Cas d'usage 'payments': orchestre repository commandes/annonces, stripe et metadata.
- create_payment_intent_for_orders: PaymentIntent pour des commandes 'pending' de l'acheteur.
- handle_webhook_event: règlement autoritaire (paid + décrément de stock une seule fois par commande).
"""
from typing import Any, Dict, List, Optional
import logging

from petmarket import config
from petmarket.listings import repository as listings_repo
from petmarket.orders import repository as orders_repo
from petmarket.orders.models import to_money
from petmarket.utils.errors import InvalidAmount, InvalidOrders
from . import metadata as meta
from . import repository
from . import stripe_client

logger = logging.getLogger(__name__)

EVENT_SUCCEEDED = "payment_intent.succeeded"
EVENT_FAILED = "payment_intent.payment_failed"

def create_payment_intent_for_orders(client, buyer: Dict[str, Any], order_ids: List[str]) -> Dict[str, Any]:
    """
    Crée un PaymentIntent couvrant plusieurs commandes.
    - Chaque id doit désigner une commande 'pending' de l'acheteur, une seule fois (un doublon est refusé).
    - Sinon InvalidOrders (message unique: on ne dit pas quel id pose problème), sans appel Stripe.
    - InvalidAmount si le total n'est pas strictement positif.
    """
    buyer_id = str(buyer["id"])
    ids = [str(i).strip() for i in order_ids if i and str(i).strip()]
    if not ids:
        raise InvalidOrders("Veuillez fournir une liste d'identifiants de commande")
    metadata = meta.make_metadata(ids, buyer_id)

    # Un id répété ne ramène qu'une ligne: le compte ne correspond plus
    orders = orders_repo.fetch_pending_orders(client, buyer_id, ids)
    if len(orders) != len(ids):
        logger.warning(
            "payments.create_payment_intent ownership/status mismatch buyer_id=%s requested=%s found=%s",
            buyer_id, len(ids), len(orders),
        )
        raise InvalidOrders()

    amount = to_money(sum(float(o.get("total_amount") or 0) for o in orders))
    if amount <= 0:
        raise InvalidAmount()

    intent = stripe_client.create_payment_intent(
        amount_minor=stripe_client.to_minor_units(amount),
        currency=config.STRIPE_CURRENCY,
        metadata=metadata,
        description=f"PetMarket - {len(orders)} commande(s)",
    )
    logger.info(
        "payments.create_payment_intent buyer_id=%s intent=%s amount=%.2f orders=%s",
        buyer_id, intent.get("id"), amount, len(orders),
    )
    return {
        "clientSecret": intent.get("client_secret"),
        "paymentIntentId": intent.get("id"),
        "amount": f"{amount:.2f}",
        "orderCount": len(orders),
    }

def settle_orders(client, payment_intent_id: str, order_ids: List[str]) -> Dict[str, Any]:
    """
    Règlement d'un paiement réussi.
    1) pending -> paid en un seul update (les commandes déjà payées restent intactes)
    2) réclamation du décrément (inventory_settled_at) puis RPC pour chaque ligne réclamée
    Chaque échec est journalisé et collecté; rien ne remonte à l'appelant.
    """
    errors: List[str] = []
    paid: List[Dict[str, Any]] = []
    try:
        paid = orders_repo.mark_paid(client, order_ids, payment_intent_id)
    except Exception as e:
        logger.exception("payments.webhook mark_paid failed intent=%s ids=%s", payment_intent_id, order_ids)
        errors.append(f"mark_paid: {e}")

    claimed: List[Dict[str, Any]] = []
    try:
        claimed = orders_repo.claim_inventory_settlement(client, order_ids, payment_intent_id)
    except Exception as e:
        logger.exception("payments.webhook claim failed intent=%s ids=%s", payment_intent_id, order_ids)
        errors.append(f"claim: {e}")

    decremented = 0
    for row in claimed:
        order_id = row.get("id")
        listing_id = row.get("listing_id")
        qty = int(row.get("quantity") or 0)
        try:
            listings_repo.decrement_listing_quantity(client, listing_id, qty)
            decremented += 1
        except Exception as e:
            # La réclamation n'est pas relâchée: le stock sera corrigé à la main depuis payment_events
            logger.exception(
                "payments.webhook decrement failed order_id=%s listing_id=%s qty=%s", order_id, listing_id, qty,
            )
            errors.append(f"decrement order={order_id} listing={listing_id}: {e}")

    logger.info(
        "payments.webhook settled intent=%s orders=%s paid=%s claimed=%s decremented=%s errors=%s",
        payment_intent_id, len(order_ids), len(paid), len(claimed), decremented, len(errors),
    )
    return {
        "paid": len(paid),
        "claimed": len(claimed),
        "decremented": decremented,
        "errors": errors,
    }

def handle_webhook_event(client, event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Traite un événement Stripe déjà authentifié.
    Retour: {"status": processed|ignored|failed|payment_failed, ...}; ne lève jamais
    pour que Stripe reçoive toujours un 200 une fois la signature validée.
    """
    event_type = str(event.get("type") or "")
    event_id = str(event.get("id") or "")
    intent, order_ids, _buyer_id = meta.extract_from_event(event)
    intent_id: Optional[str] = intent.get("id")

    def _record(status: str, error: Optional[str] = None) -> None:
        repository.record_event(
            client,
            event_id=event_id,
            event_type=event_type,
            payment_intent_id=intent_id,
            order_ids=order_ids,
            status=status,
            error=error,
        )

    if event_type == EVENT_SUCCEEDED:
        if not order_ids:
            logger.info("payments.webhook succeeded without orderIds intent=%s", intent_id)
            _record(repository.EVENT_IGNORED)
            return {"status": repository.EVENT_IGNORED}
        result = settle_orders(client, intent_id or "", order_ids)
        if result["errors"]:
            _record(repository.EVENT_FAILED, "; ".join(result["errors"]))
            return {"status": repository.EVENT_FAILED, **result}
        _record(repository.EVENT_PROCESSED)
        return {"status": repository.EVENT_PROCESSED, **result}

    if event_type == EVENT_FAILED:
        last_error = intent.get("last_payment_error") or {}
        reason = (last_error.get("message") if isinstance(last_error, dict) else None) or "Unknown error"
        logger.warning("payments.webhook payment failed intent=%s orders=%s reason=%s", intent_id, order_ids, reason)
        _record(repository.EVENT_PAYMENT_FAILED, reason)
        return {"status": repository.EVENT_PAYMENT_FAILED}

    logger.info("payments.webhook unhandled event type=%s", event_type)
    _record(repository.EVENT_IGNORED)
    return {"status": repository.EVENT_IGNORED}
