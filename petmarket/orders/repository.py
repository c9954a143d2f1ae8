"""
Accès aux données pour la table 'orders'.

Les mises à jour de statut sont conditionnelles (filtre eq sur le statut courant):
le filtre sert de garde de concurrence optimiste, la base ne modifie que les lignes
encore dans l'état attendu et renvoie uniquement celles-ci.
"""
from typing import Any, Dict, Iterable, List, Optional
from datetime import datetime, timezone
import logging

from petmarket.utils.errors import UpstreamFailure
from .models import STATUS_DELIVERED, STATUS_PAID, STATUS_PENDING, STATUS_SHIPPED

logger = logging.getLogger(__name__)

# Statuts atteints après un paiement réussi
SETTLED_STATUSES = (STATUS_PAID, STATUS_SHIPPED, STATUS_DELIVERED)

ORDER_COLUMNS = (
    "id, buyer_id, seller_id, listing_id, quantity, unit_price, buyer_fee, seller_fee, "
    "total_amount, seller_payout, status, shipping_address, phone, notes, stripe_payment_id, "
    "inventory_settled_at, created_at, updated_at"
)

def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()

def _ids(values: Iterable[str]) -> List[str]:
    return [str(v) for v in values if v]

# module petmarket.orders.repository
def insert_order(client, row: Dict[str, Any]) -> Dict[str, Any]:
    """Insère une commande et retourne la ligne créée. Lève UpstreamFailure si l'insert échoue."""
    try:
        res = client.table("orders").insert(row).execute()
        rows = res.data or []
    except Exception:
        logger.exception("orders.repository.insert_order failed buyer_id=%s listing_id=%s", row.get("buyer_id"), row.get("listing_id"))
        raise UpstreamFailure("Impossible de créer la commande")
    if not rows:
        raise UpstreamFailure("Impossible de créer la commande")
    return rows[0]

def fetch_pending_orders(client, buyer_id: str, order_ids: Iterable[str]) -> List[Dict[str, Any]]:
    """Commandes de l'acheteur encore 'pending' parmi order_ids."""
    ids = _ids(order_ids)
    try:
        res = (
            client.table("orders")
            .select("id, total_amount, buyer_id, status")
            .in_("id", ids)
            .eq("buyer_id", buyer_id)
            .eq("status", STATUS_PENDING)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.fetch_pending_orders failed buyer_id=%s", buyer_id)
        raise UpstreamFailure("Impossible de charger les commandes")

def mark_paid_for_buyer(client, buyer_id: str, order_ids: Iterable[str], payment_ref: str) -> List[Dict[str, Any]]:
    """Confirmation client (optimiste): pending -> paid, limité aux commandes de l'acheteur."""
    ids = _ids(order_ids)
    try:
        res = (
            client.table("orders")
            .update({"status": STATUS_PAID, "stripe_payment_id": payment_ref, "updated_at": _now_iso()})
            .in_("id", ids)
            .eq("buyer_id", buyer_id)
            .eq("status", STATUS_PENDING)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.mark_paid_for_buyer failed buyer_id=%s ids=%s", buyer_id, ids)
        raise UpstreamFailure("Impossible de confirmer le paiement")

def mark_paid(client, order_ids: Iterable[str], payment_ref: str) -> List[Dict[str, Any]]:
    """Webhook (autoritaire): pending -> paid en un seul update sur la liste d'ids."""
    ids = _ids(order_ids)
    res = (
        client.table("orders")
        .update({"status": STATUS_PAID, "stripe_payment_id": payment_ref, "updated_at": _now_iso()})
        .in_("id", ids)
        .eq("status", STATUS_PENDING)
        .execute()
    )
    return res.data or []

def claim_inventory_settlement(client, order_ids: Iterable[str], payment_ref: str) -> List[Dict[str, Any]]:
    """
    Réserve le décrément de stock: pose inventory_settled_at sur les commandes réglées par ce paiement
    (paid, shipped ou delivered: le vendeur a pu avancer la commande avant le webhook) qui ne l'ont pas.
    Renvoie uniquement les lignes réclamées par cet appel; une relivraison ne réclame plus rien.
    """
    ids = _ids(order_ids)
    res = (
        client.table("orders")
        .update({"inventory_settled_at": _now_iso()})
        .in_("id", ids)
        .eq("stripe_payment_id", payment_ref)
        .in_("status", list(SETTLED_STATUSES))
        .is_("inventory_settled_at", "null")
        .execute()
    )
    return res.data or []

def get_order(client, order_id: str) -> Optional[Dict[str, Any]]:
    try:
        res = (
            client.table("orders")
            .select(ORDER_COLUMNS)
            .eq("id", order_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("orders.repository.get_order failed order_id=%s", order_id)
        raise UpstreamFailure("Impossible de charger la commande")

def list_orders_by(client, column: str, user_id: str) -> List[Dict[str, Any]]:
    """Commandes d'un acheteur (column='buyer_id') ou d'un vendeur (column='seller_id'), récentes d'abord."""
    try:
        res = (
            client.table("orders")
            .select(ORDER_COLUMNS)
            .eq(column, user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.list_orders_by failed %s=%s", column, user_id)
        raise UpstreamFailure("Impossible de charger les commandes")

def update_status(client, order_id: str, seller_id: str, current: str, target: str) -> Optional[Dict[str, Any]]:
    """Changement de statut par le vendeur, conditionné au statut lu (None si une écriture concurrente a gagné)."""
    try:
        res = (
            client.table("orders")
            .update({"status": target, "updated_at": _now_iso()})
            .eq("id", order_id)
            .eq("seller_id", seller_id)
            .eq("status", current)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("orders.repository.update_status failed order_id=%s", order_id)
        raise UpstreamFailure("Impossible de mettre à jour la commande")
