"""
Vue panier: lignes du panier enrichies de l'état courant de l'annonce + récapitulatif.
Logique pure (pas de DB): la composition des lignes et le calcul des totaux sont testables isolément.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from petmarket.listings.models import Listing, STATUS_REMOVED, seller_display_name
from petmarket.orders.models import BUYER_FEE_RATE, to_money


class CartItem(BaseModel):
    id: str
    listing_id: str
    quantity: int
    price: float = 0.0
    name: Optional[str] = None
    type: Optional[str] = None
    breed: Optional[str] = None
    seller_id: Optional[str] = None
    seller_name: str = ""
    primary_photo: Optional[str] = None
    available_quantity: int = 0
    status: str = STATUS_REMOVED
    purchasable: bool = False

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class CartSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subtotal: float = 0.0
    buyer_fee: float = Field(default=0.0, serialization_alias="buyerFee")
    total: float = 0.0


class CartView(BaseModel):
    items: List[CartItem] = Field(default_factory=list)
    summary: CartSummary = Field(default_factory=CartSummary)

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


def build_cart_item(
    line: Dict[str, Any],
    listing: Optional[Listing],
    profile: Optional[Dict[str, Any]] = None,
    photo_url: Optional[str] = None,
) -> CartItem:
    """
    Compose une ligne du panier avec l'annonce courante.
    - Annonce disparue: ligne conservée, statut 'removed', prix et quantité disponibles à 0.
    - purchasable: annonce 'available' et quantité demandée <= quantité disponible.
    """
    quantity = int(line.get("quantity") or 0)
    item = CartItem(
        id=str(line.get("id")),
        listing_id=str(line.get("listing_id")),
        quantity=quantity,
    )
    if listing is None:
        return item
    item.price = listing.price
    item.name = listing.name
    item.type = listing.type
    item.breed = listing.breed
    item.seller_id = listing.seller_id
    item.seller_name = seller_display_name(profile)
    item.primary_photo = photo_url
    item.available_quantity = listing.quantity_available
    item.status = listing.status
    item.purchasable = listing.can_supply(quantity)
    return item


def summarize(items: List[CartItem]) -> CartSummary:
    """subtotal = Σ prix × quantité; buyerFee = 5 % du subtotal; total = subtotal + buyerFee."""
    subtotal = sum(item.line_total for item in items)
    buyer_fee = subtotal * BUYER_FEE_RATE
    return CartSummary(
        subtotal=to_money(subtotal),
        buyer_fee=to_money(buyer_fee),
        total=to_money(subtotal + buyer_fee),
    )
