"""
Commandes: statuts, transitions autorisées et calcul des frais.

Une commande est un instantané prix/frais figé à sa création:
- buyer_fee = 5 % de (prix unitaire × quantité)
- seller_fee = 10 % de (prix unitaire × quantité)
- total_amount = brut + buyer_fee, seller_payout = brut - seller_fee
Seuls status, stripe_payment_id, inventory_settled_at et updated_at évoluent ensuite.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field

BUYER_FEE_RATE = 0.05
SELLER_FEE_RATE = 0.10

STATUS_PENDING = "pending"
STATUS_PAID = "paid"
STATUS_SHIPPED = "shipped"
STATUS_DELIVERED = "delivered"
STATUS_CANCELLED = "cancelled"

ORDER_STATUSES = (STATUS_PENDING, STATUS_PAID, STATUS_SHIPPED, STATUS_DELIVERED, STATUS_CANCELLED)

# pending -> paid n'est jamais accordé au vendeur: seuls la confirmation client et le webhook le posent
SELLER_TRANSITIONS = {
    STATUS_PENDING: {STATUS_CANCELLED},
    STATUS_PAID: {STATUS_SHIPPED, STATUS_CANCELLED},
    STATUS_SHIPPED: {STATUS_DELIVERED},
    STATUS_DELIVERED: set(),
    STATUS_CANCELLED: set(),
}


def to_money(value: float) -> float:
    return round(float(value), 2)


def can_transition(current: str, target: str) -> bool:
    return target in SELLER_TRANSITIONS.get(current, set())


class OrderAmounts(BaseModel):
    unit_price: float
    quantity: int
    buyer_fee: float
    seller_fee: float
    total_amount: float
    seller_payout: float


def compute_amounts(unit_price: float, quantity: int) -> OrderAmounts:
    gross = float(unit_price) * int(quantity)
    buyer_fee = to_money(gross * BUYER_FEE_RATE)
    seller_fee = to_money(gross * SELLER_FEE_RATE)
    return OrderAmounts(
        unit_price=to_money(unit_price),
        quantity=int(quantity),
        buyer_fee=buyer_fee,
        seller_fee=seller_fee,
        total_amount=to_money(gross + buyer_fee),
        seller_payout=to_money(gross - seller_fee),
    )


class ShippingAddress(BaseModel):
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = Field(default="", alias="zipCode")

    model_config = ConfigDict(populate_by_name=True)

    def format(self) -> str:
        return f"{self.street}, {self.city}, {self.state} {self.zip_code}".strip()


class CheckoutRequest(BaseModel):
    """Coordonnées saisies au checkout (adresse structurée ou chaîne libre)."""
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    name: Optional[str] = None
    address: Optional[ShippingAddress] = None
    shipping_address: Optional[str] = Field(default=None, alias="shippingAddress")
    notes: Optional[str] = None

    def formatted_address(self) -> str:
        if self.address is not None:
            return self.address.format()
        return self.shipping_address or ""


class ConfirmPaymentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_ids: List[str] = Field(alias="orderIds", min_length=1)
    payment_intent_id: str = Field(alias="paymentIntentId", min_length=1)


class StatusUpdateRequest(BaseModel):
    status: str


def build_order_row(
    *,
    buyer_id: str,
    seller_id: Optional[str],
    listing_id: str,
    unit_price: float,
    quantity: int,
    checkout: CheckoutRequest,
) -> Dict[str, Any]:
    """Ligne 'orders' à insérer pour une ligne de panier, au prix courant de l'annonce."""
    amounts = compute_amounts(unit_price, quantity)
    return {
        "buyer_id": buyer_id,
        "seller_id": seller_id,
        "listing_id": listing_id,
        **amounts.model_dump(),
        "status": STATUS_PENDING,
        "shipping_address": checkout.formatted_address(),
        "phone": checkout.phone,
        "notes": checkout.notes or None,
    }
