"""
Sérialisation/désérialisation des métadonnées Stripe (orderIds, buyerId).
Les ids de commandes voyagent en une chaîne "id1,id2,..." (Stripe limite chaque valeur à 500 caractères).
"""
from typing import Any, Dict, Iterable, List, Tuple

from petmarket import config
from petmarket.utils.errors import InvalidOrders

METADATA_VALUE_LIMIT = 500

# module petmarket.payments.metadata
def make_metadata(order_ids: Iterable[str], buyer_id: str) -> Dict[str, str]:
    """
    Métadonnées attachées au PaymentIntent pour que le webhook retrouve les commandes à régler.
    - InvalidOrders si la liste d'ids dépasse la limite Stripe d'une valeur de métadonnée.
    """
    joined = ",".join(str(i) for i in order_ids)
    if len(joined) > METADATA_VALUE_LIMIT:
        raise InvalidOrders("Trop de commandes pour un seul paiement")
    return {
        "orderIds": joined,
        "buyerId": buyer_id,
        "platform": config.PLATFORM_TAG,
    }

def parse_order_ids(value: Any) -> List[str]:
    """'a, b,,a' -> ['a', 'b'] (ordre conservé, doublons et vides ignorés)."""
    if not value or not isinstance(value, str):
        return []
    return list(dict.fromkeys(part.strip() for part in value.split(",") if part.strip()))

def extract_from_intent(intent: Dict[str, Any]) -> Tuple[List[str], str | None]:
    """Extrait (order_ids, buyer_id) depuis un PaymentIntent (dict)."""
    meta = (intent or {}).get("metadata") or {}
    return parse_order_ids(meta.get("orderIds")), meta.get("buyerId")

def extract_from_event(event: Dict[str, Any]) -> Tuple[Dict[str, Any], List[str], str | None]:
    """
    Extrait (payment_intent, order_ids, buyer_id) depuis un event Stripe (webhook).
    - Attend event.data.object.metadata.{orderIds, buyerId}
    - Tolérant: ([], None) si les métadonnées sont absentes (événement de test envoyé depuis le dashboard).
    """
    data_obj = ((event or {}).get("data") or {}).get("object") or {}
    if not isinstance(data_obj, dict):
        data_obj = {}
    order_ids, buyer_id = extract_from_intent(data_obj)
    return data_obj, order_ids, buyer_id
