"""
Module 'payments' (feature-first): point d'entrée public.
Réunit metadata Stripe, client Stripe, journal des événements et services (PaymentIntent, webhook).
"""

from .metadata import make_metadata, parse_order_ids, extract_from_intent, extract_from_event
from .stripe_client import (
    require_stripe,
    create_payment_intent,
    retrieve_payment_intent,
    verify_event,
    parse_event,
    to_minor_units,
)
from .repository import record_event
from .service import create_payment_intent_for_orders, settle_orders, handle_webhook_event

__all__ = [
    # metadata
    "make_metadata",
    "parse_order_ids",
    "extract_from_intent",
    "extract_from_event",
    # stripe
    "require_stripe",
    "create_payment_intent",
    "retrieve_payment_intent",
    "verify_event",
    "parse_event",
    "to_minor_units",
    # repository
    "record_event",
    # services
    "create_payment_intent_for_orders",
    "settle_orders",
    "handle_webhook_event",
]
