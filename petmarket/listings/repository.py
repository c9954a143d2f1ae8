"""
Accès aux données 'listings' (annonces), 'profiles' (vendeurs) et 'listing_photos'.
- Les jointures sont faites côté application: un fetch par table, puis composition dans les services.
- decrement_listing_quantity: appel de la procédure stockée atomique (jamais lecture puis écriture).
"""
from typing import Any, Dict, Iterable, List
import logging
from petmarket.utils.errors import UpstreamFailure

logger = logging.getLogger(__name__)

def _ids(values: Iterable[str]) -> List[str]:
    return sorted({str(v) for v in values if v})

def fetch_listings_by_ids(client, ids: Iterable[str]) -> List[Dict[str, Any]]:
    ids = _ids(ids)
    if not ids:
        return []
    try:
        res = (
            client.table("listings")
            .select("id, seller_id, name, type, breed, price, quantity_available, status")
            .in_("id", ids)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("listings.repository.fetch_listings_by_ids failed ids=%s", ids)
        raise UpstreamFailure("Impossible de charger les annonces")

def get_listing(client, listing_id: str) -> Dict[str, Any] | None:
    rows = fetch_listings_by_ids(client, [listing_id])
    return rows[0] if rows else None

def fetch_profiles_by_ids(client, ids: Iterable[str]) -> List[Dict[str, Any]]:
    """Profils vendeurs; best-effort: [] en cas d’erreur (le nom affiché est décoratif)."""
    ids = _ids(ids)
    if not ids:
        return []
    try:
        res = (
            client.table("profiles")
            .select("id, first_name, last_name")
            .in_("id", ids)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.warning("listings.repository.fetch_profiles_by_ids failed ids=%s", ids)
        return []

def fetch_primary_photos(client, listing_ids: Iterable[str]) -> Dict[str, str]:
    """Retourne {listing_id: photo_url}, en privilégiant is_primary puis la première photo."""
    ids = _ids(listing_ids)
    if not ids:
        return {}
    try:
        res = (
            client.table("listing_photos")
            .select("listing_id, photo_url, is_primary")
            .in_("listing_id", ids)
            .execute()
        )
        rows = res.data or []
    except Exception:
        logger.warning("listings.repository.fetch_primary_photos failed ids=%s", ids)
        return {}
    photos: Dict[str, str] = {}
    for row in sorted(rows, key=lambda r: not r.get("is_primary")):
        photos.setdefault(str(row.get("listing_id")), row.get("photo_url"))
    return photos

def decrement_listing_quantity(client, listing_id: str, qty: int) -> Any:
    """
    Décrément atomique côté base (procédure decrement_listing_quantity).
    - Passe le statut à 'sold' dans la même instruction si la quantité atteint 0.
    - Lève si la base refuse (quantité insuffisante, annonce introuvable).
    """
    res = client.rpc("decrement_listing_quantity", {"listing_id": listing_id, "qty": int(qty)}).execute()
    return res.data
