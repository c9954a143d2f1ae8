"""
Cas d'usage 'cart': agrégation du panier (lecture seule) et mutations de lignes.

get_cart est l'agrégateur utilisé par le checkout: il relit l'état courant des annonces
et ne retire jamais de ligne automatiquement (le filtrage est laissé à l'UI).
"""
from typing import Any, Dict, Optional
import logging

from petmarket.listings import repository as listings_repo
from petmarket.listings.models import Listing
from petmarket.utils.errors import NotAuthenticated, NotFound
from . import repository
from .models import CartView, build_cart_item, summarize

logger = logging.getLogger(__name__)

def _require_buyer(buyer: Optional[Dict[str, Any]]) -> str:
    buyer_id = (buyer or {}).get("id")
    if not buyer_id:
        raise NotAuthenticated()
    return str(buyer_id)

def get_cart(client, buyer: Dict[str, Any]) -> CartView:
    """
    Agrège le panier de l'acheteur:
    1) lignes du panier
    2) annonces référencées (prix, quantité disponible, statut)
    3) profils vendeurs et photo principale (best-effort)
    """
    buyer_id = _require_buyer(buyer)
    lines = repository.list_cart_lines(client, buyer_id)
    if not lines:
        return CartView()

    listings = {
        str(row.get("id")): Listing.from_row(row)
        for row in listings_repo.fetch_listings_by_ids(client, [l.get("listing_id") for l in lines])
    }
    profiles = {
        str(p.get("id")): p
        for p in listings_repo.fetch_profiles_by_ids(client, [l.seller_id for l in listings.values()])
    }
    photos = listings_repo.fetch_primary_photos(client, listings.keys())

    items = []
    for line in lines:
        listing = listings.get(str(line.get("listing_id")))
        profile = profiles.get(str(listing.seller_id)) if listing else None
        photo = photos.get(listing.id) if listing else None
        items.append(build_cart_item(line, listing, profile, photo))
    return CartView(items=items, summary=summarize(items))

def add_item(client, buyer: Dict[str, Any], listing_id: str, quantity: int = 1) -> Dict[str, Any]:
    """Ajoute une annonce au panier; si la ligne existe déjà, incrémente sa quantité."""
    buyer_id = _require_buyer(buyer)
    if listings_repo.get_listing(client, listing_id) is None:
        raise NotFound("Annonce introuvable")
    existing = repository.find_line(client, buyer_id, listing_id)
    if existing:
        new_qty = int(existing.get("quantity") or 0) + quantity
        row = repository.update_line_quantity(client, buyer_id, str(existing["id"]), new_qty)
    else:
        row = repository.insert_line(client, buyer_id, listing_id, quantity)
    logger.info("cart.add buyer_id=%s listing_id=%s qty=%s", buyer_id, listing_id, quantity)
    return row or {}

def update_item(client, buyer: Dict[str, Any], line_id: str, quantity: int) -> Dict[str, Any]:
    buyer_id = _require_buyer(buyer)
    row = repository.update_line_quantity(client, buyer_id, line_id, quantity)
    if not row:
        raise NotFound("Article absent du panier")
    return row

def remove_item(client, buyer: Dict[str, Any], line_id: str) -> Dict[str, Any]:
    buyer_id = _require_buyer(buyer)
    if not repository.delete_line(client, buyer_id, line_id):
        raise NotFound("Article absent du panier")
    return {"message": "Article retiré du panier"}

def clear(client, buyer: Dict[str, Any]) -> Dict[str, Any]:
    buyer_id = _require_buyer(buyer)
    removed = repository.clear_cart(client, buyer_id)
    return {"message": "Panier vidé", "removed": removed}
