"""
Accès aux données pour le panier (table 'cart').
Toutes les requêtes sont filtrées par buyer_id en plus de la RLS du client utilisateur.
"""
from typing import Any, Dict, Iterable, List, Optional
import logging
from petmarket.utils.errors import UpstreamFailure

logger = logging.getLogger(__name__)

# module petmarket.cart.repository
def list_cart_lines(client, buyer_id: str) -> List[Dict[str, Any]]:
    """Lignes du panier, les plus récentes d'abord."""
    try:
        res = (
            client.table("cart")
            .select("id, buyer_id, listing_id, quantity, created_at")
            .eq("buyer_id", buyer_id)
            .order("created_at", desc=True)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("cart.repository.list_cart_lines failed buyer_id=%s", buyer_id)
        raise UpstreamFailure("Impossible de charger le panier")

def find_line(client, buyer_id: str, listing_id: str) -> Optional[Dict[str, Any]]:
    try:
        res = (
            client.table("cart")
            .select("id, quantity")
            .eq("buyer_id", buyer_id)
            .eq("listing_id", listing_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("cart.repository.find_line failed buyer_id=%s listing_id=%s", buyer_id, listing_id)
        raise UpstreamFailure("Impossible de charger le panier")

def insert_line(client, buyer_id: str, listing_id: str, quantity: int) -> Optional[Dict[str, Any]]:
    try:
        res = (
            client.table("cart")
            .insert({"buyer_id": buyer_id, "listing_id": listing_id, "quantity": quantity})
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("cart.repository.insert_line failed buyer_id=%s listing_id=%s", buyer_id, listing_id)
        raise UpstreamFailure("Impossible d'ajouter l'article au panier")

def update_line_quantity(client, buyer_id: str, line_id: str, quantity: int) -> Optional[Dict[str, Any]]:
    try:
        res = (
            client.table("cart")
            .update({"quantity": quantity})
            .eq("id", line_id)
            .eq("buyer_id", buyer_id)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("cart.repository.update_line_quantity failed line_id=%s", line_id)
        raise UpstreamFailure("Impossible de mettre à jour le panier")

def delete_line(client, buyer_id: str, line_id: str) -> int:
    try:
        res = (
            client.table("cart")
            .delete()
            .eq("id", line_id)
            .eq("buyer_id", buyer_id)
            .execute()
        )
        return len(res.data or [])
    except Exception:
        logger.exception("cart.repository.delete_line failed line_id=%s", line_id)
        raise UpstreamFailure("Impossible de retirer l'article du panier")

def delete_lines(client, buyer_id: str, line_ids: Iterable[str]) -> int:
    ids = [str(i) for i in line_ids if i]
    if not ids:
        return 0
    try:
        res = (
            client.table("cart")
            .delete()
            .in_("id", ids)
            .eq("buyer_id", buyer_id)
            .execute()
        )
        return len(res.data or [])
    except Exception:
        logger.exception("cart.repository.delete_lines failed buyer_id=%s ids=%s", buyer_id, ids)
        raise UpstreamFailure("Impossible de vider le panier")

def clear_cart(client, buyer_id: str) -> int:
    try:
        res = client.table("cart").delete().eq("buyer_id", buyer_id).execute()
        return len(res.data or [])
    except Exception:
        logger.exception("cart.repository.clear_cart failed buyer_id=%s", buyer_id)
        raise UpstreamFailure("Impossible de vider le panier")
