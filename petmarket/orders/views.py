# module petmarket.orders.views

"""Endpoints de l’user story Achat/Commandes.
- /checkout: crée une commande 'pending' par ligne du panier (authentifié, rate-limité).
- /confirm-payment: confirmation optimiste après paiement côté client (le webhook reste la référence).
- /purchases, /sales, /{id}: lectures acheteur / vendeur.
- /{id}/status: avancement par le vendeur (shipped, delivered, cancelled).
"""
from typing import Any, Dict
import logging
from fastapi import APIRouter, Depends

from petmarket.utils.security import require_user
from petmarket.utils.rate_limit import optional_rate_limit
from petmarket.utils.dependencies import get_user_client
from . import service as orders_service
from .models import CheckoutRequest, ConfirmPaymentRequest, StatusUpdateRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/orders", tags=["Orders API"])


@router.post("/checkout", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def api_checkout(body: CheckoutRequest, user: Dict[str, Any] = Depends(require_user), client=Depends(get_user_client)):
    """Transforme le panier en commandes.
    Réponse: {orders, orderIds, failed, skipped, cartCleared}; orderIds alimente ensuite create-payment-intent.
    """
    return orders_service.checkout(client, user, body)

@router.post("/confirm-payment")
def api_confirm_payment(body: ConfirmPaymentRequest, user: Dict[str, Any] = Depends(require_user), client=Depends(get_user_client)):
    return orders_service.confirm_payment(client, user, body.order_ids, body.payment_intent_id)

@router.get("/purchases")
def api_purchases(user: Dict[str, Any] = Depends(require_user), client=Depends(get_user_client)):
    return {"orders": orders_service.list_purchases(client, user)}

@router.get("/sales")
def api_sales(user: Dict[str, Any] = Depends(require_user), client=Depends(get_user_client)):
    return {"orders": orders_service.list_sales(client, user)}

@router.get("/{order_id}")
def api_get_order(order_id: str, user: Dict[str, Any] = Depends(require_user), client=Depends(get_user_client)):
    return orders_service.get_order_for_user(client, user, order_id)

@router.patch("/{order_id}/status")
def api_update_status(order_id: str, body: StatusUpdateRequest, user: Dict[str, Any] = Depends(require_user), client=Depends(get_user_client)):
    return orders_service.update_order_status(client, user, order_id, body.status)
