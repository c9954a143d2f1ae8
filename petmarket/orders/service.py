"""Couche service des commandes.
Rôles:
- checkout: transforme le panier courant en une commande 'pending' par ligne (instantané prix/frais).
- confirm_payment: chemin optimiste appelé par le front après confirmation Stripe côté client.
- lectures acheteur/vendeur et changement de statut par le vendeur.
Le système de référence pour « payé » reste le webhook Stripe (petmarket.payments.service).
"""
from typing import Any, Dict, List
import logging

from fastapi import HTTPException

from petmarket import config
from petmarket.cart import repository as cart_repo
from petmarket.cart import service as cart_service
from petmarket.payments import metadata as payments_metadata
from petmarket.payments import stripe_client
from petmarket.utils.errors import (
    EmptyCart,
    InvalidOrders,
    InvalidTransition,
    NotFound,
    Unauthorized,
    UnavailableItems,
    UpstreamFailure,
)
from . import repository
from .models import ORDER_STATUSES, CheckoutRequest, build_order_row, can_transition

logger = logging.getLogger(__name__)

# processing peut encore échouer: seul le webhook tranche dans ce cas
CONFIRMABLE_INTENT_STATUSES = ("succeeded",)

def checkout(client, buyer: Dict[str, Any], details: CheckoutRequest) -> Dict[str, Any]:
    """
    Crée une commande par ligne de panier achetable, au prix courant de l'annonce.
    - EmptyCart si le panier est vide, UnavailableItems si aucune ligne n'est achetable.
    - Inserts indépendants: un échec n'annule pas les commandes déjà créées.
    - UpstreamFailure si aucun insert n'aboutit (le panier est alors conservé).
    - Dès qu'une commande existe, le panier est vidé selon CHECKOUT_CART_POLICY.
    """
    cart = cart_service.get_cart(client, buyer)
    if not cart.items:
        raise EmptyCart()

    buyer_id = str(buyer["id"])
    purchasable = [item for item in cart.items if item.purchasable]
    skipped = [item.id for item in cart.items if not item.purchasable]
    if not purchasable:
        raise UnavailableItems()

    orders: List[Dict[str, Any]] = []
    ordered_lines: List[str] = []
    failed: List[str] = []
    for item in purchasable:
        row = build_order_row(
            buyer_id=buyer_id,
            seller_id=item.seller_id,
            listing_id=item.listing_id,
            unit_price=item.price,
            quantity=item.quantity,
            checkout=details,
        )
        try:
            orders.append(repository.insert_order(client, row))
            ordered_lines.append(item.id)
        except UpstreamFailure:
            failed.append(item.id)

    if not orders:
        raise UpstreamFailure("Aucune commande n'a pu être créée, veuillez réessayer")

    cart_cleared = _clear_after_checkout(client, buyer_id, ordered_lines)
    logger.info(
        "orders.checkout buyer_id=%s created=%s failed=%s skipped=%s cart_cleared=%s",
        buyer_id, len(orders), len(failed), len(skipped), cart_cleared,
    )
    return {
        "orders": orders,
        "orderIds": [str(o.get("id")) for o in orders],
        "failed": failed,
        "skipped": skipped,
        "cartCleared": cart_cleared,
    }

def _clear_after_checkout(client, buyer_id: str, ordered_lines: List[str]) -> bool:
    # Les commandes existent déjà: un échec de vidage ne doit pas faire perdre leurs ids au front
    try:
        if config.CHECKOUT_CART_POLICY == "clear_ordered":
            cart_repo.delete_lines(client, buyer_id, ordered_lines)
        else:
            cart_repo.clear_cart(client, buyer_id)
        return True
    except UpstreamFailure:
        logger.warning("orders.checkout cart not cleared buyer_id=%s", buyer_id)
        return False

def confirm_payment(client, buyer: Dict[str, Any], order_ids: List[str], payment_intent_id: str) -> Dict[str, Any]:
    """
    Chemin optimiste après confirmCardPayment côté client.
    - Relit le PaymentIntent: statut succeeded requis, propriétaire = appelant.
    - Ne touche que les ids présents dans les métadonnées du PaymentIntent.
    - Mise à jour conditionnelle pending -> paid (idempotente, jamais de décrément de stock).
    """
    buyer_id = str(buyer["id"])
    intent = stripe_client.retrieve_payment_intent(payment_intent_id)
    status = stripe_client.field(intent, "status") or ""
    if status not in CONFIRMABLE_INTENT_STATUSES:
        raise HTTPException(status_code=400, detail=f"Paiement non confirmé (status={status})")

    meta_order_ids, meta_buyer_id = payments_metadata.extract_from_intent(intent)
    if meta_buyer_id and meta_buyer_id != buyer_id:
        raise Unauthorized("Paiement appartenant à un autre utilisateur")

    ids = [i for i in dict.fromkeys(order_ids) if i in meta_order_ids]
    if not ids:
        raise InvalidOrders()

    rows = repository.mark_paid_for_buyer(client, buyer_id, ids, payment_intent_id)
    logger.info("orders.confirm_payment buyer_id=%s intent=%s updated=%s", buyer_id, payment_intent_id, len(rows))
    return {"orders": rows, "updated": len(rows)}

def list_purchases(client, user: Dict[str, Any]) -> List[Dict[str, Any]]:
    return repository.list_orders_by(client, "buyer_id", str(user["id"]))

def list_sales(client, user: Dict[str, Any]) -> List[Dict[str, Any]]:
    return repository.list_orders_by(client, "seller_id", str(user["id"]))

def get_order_for_user(client, user: Dict[str, Any], order_id: str) -> Dict[str, Any]:
    order = repository.get_order(client, order_id)
    uid = str(user["id"])
    if not order or uid not in (str(order.get("buyer_id")), str(order.get("seller_id"))):
        raise NotFound("Commande introuvable")
    return order

def update_order_status(client, seller: Dict[str, Any], order_id: str, target: str) -> Dict[str, Any]:
    """Statut vendeur: paid -> shipped -> delivered, pending|paid -> cancelled."""
    if target not in ORDER_STATUSES:
        raise InvalidTransition(f"Statut inconnu: {target}")
    order = repository.get_order(client, order_id)
    if not order:
        raise NotFound("Commande introuvable")
    seller_id = str(seller["id"])
    if str(order.get("seller_id")) != seller_id:
        raise Unauthorized("Seul le vendeur peut modifier cette commande")
    current = order.get("status") or ""
    if not can_transition(current, target):
        raise InvalidTransition(f"Transition {current} -> {target} non autorisée")
    updated = repository.update_status(client, order_id, seller_id, current, target)
    if not updated:
        raise InvalidTransition("La commande a été modifiée entre-temps, rechargez-la")
    logger.info("orders.update_status order_id=%s %s->%s", order_id, current, target)
    return updated
