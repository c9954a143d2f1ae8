"""
Journal des événements Stripe reçus (table payment_events).
Sert d'audit et de file d'erreurs: un échec de règlement y laisse une trace exploitable
pour un rejeu manuel, même si le webhook a répondu 200 à Stripe.
"""
from typing import Any, Dict, Iterable, Optional
from datetime import datetime, timezone
import logging

from petmarket import config

logger = logging.getLogger(__name__)

EVENT_RECEIVED = "received"
EVENT_PROCESSED = "processed"
EVENT_IGNORED = "ignored"
EVENT_FAILED = "failed"
EVENT_PAYMENT_FAILED = "payment_failed"

# module petmarket.payments.repository
def record_event(
    client,
    *,
    event_id: str,
    event_type: str,
    payment_intent_id: Optional[str],
    order_ids: Iterable[str],
    status: str,
    error: Optional[str] = None,
) -> bool:
    """
    Upsert (clé event_id) d'un événement Stripe.
    Ne lève jamais: l'audit ne doit pas changer la réponse faite à Stripe.
    """
    row: Dict[str, Any] = {
        "event_id": event_id or None,
        "type": event_type,
        "payment_intent_id": payment_intent_id or None,
        "order_ids": [str(i) for i in order_ids],
        "status": status,
        "error": error,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }
    try:
        if event_id:
            client.table(config.PAYMENT_EVENTS_TABLE).upsert(row, on_conflict="event_id").execute()
        else:
            client.table(config.PAYMENT_EVENTS_TABLE).insert(row).execute()
        return True
    except Exception:
        logger.exception("payments.repository.record_event failed event_id=%s status=%s", event_id, status)
        return False
