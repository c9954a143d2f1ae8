"""
Modèles de lecture pour les annonces (table listings) et les vendeurs (table profiles).
"""
from typing import Any, Dict, Optional
from pydantic import BaseModel

STATUS_AVAILABLE = "available"
STATUS_PENDING = "pending"
STATUS_SOLD = "sold"
STATUS_REMOVED = "removed"

LISTING_STATUSES = (STATUS_AVAILABLE, STATUS_PENDING, STATUS_SOLD, STATUS_REMOVED)


class Listing(BaseModel):
    id: str
    seller_id: Optional[str] = None
    name: Optional[str] = None
    type: Optional[str] = None
    breed: Optional[str] = None
    price: float = 0.0
    quantity_available: int = 0
    status: str = STATUS_REMOVED

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Listing":
        return cls(
            id=str(row.get("id")),
            seller_id=row.get("seller_id"),
            name=row.get("name"),
            type=row.get("type"),
            breed=row.get("breed"),
            price=price_from_row(row),
            quantity_available=int(row.get("quantity_available") or 0),
            status=row.get("status") or STATUS_REMOVED,
        )

    def can_supply(self, quantity: int) -> bool:
        return self.status == STATUS_AVAILABLE and 0 < quantity <= self.quantity_available


def price_from_row(row: Dict[str, Any]) -> float:
    """Prix d’une annonce (float). Accepte str|float|int, 0.0 si parsing impossible."""
    try:
        return float(row.get("price") or 0)
    except (TypeError, ValueError):
        return 0.0


def seller_display_name(profile: Optional[Dict[str, Any]]) -> str:
    if not profile:
        return ""
    return " ".join(p for p in (profile.get("first_name"), profile.get("last_name")) if p)
