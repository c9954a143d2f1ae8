# module petmarket.cart.views
"""Endpoints panier (/api/cart).
- GET: panier agrégé {items, summary{subtotal, buyerFee, total}}
- POST /items: ajout (incrémente si l'annonce est déjà dans le panier)
- PATCH /items/{id}, DELETE /items/{id}, DELETE: mutations des lignes
Sécurité: require_user + client Supabase au nom de l'utilisateur (RLS).
"""
from typing import Any, Dict
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from petmarket.utils.security import require_user
from petmarket.utils.dependencies import get_user_client
from . import service as cart_service

router = APIRouter(prefix="/api/cart", tags=["Cart API"])


class AddItemRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    listing_id: str = Field(alias="listingId", min_length=1)
    quantity: int = Field(default=1, ge=1)


class UpdateItemRequest(BaseModel):
    quantity: int = Field(ge=1)


@router.get("")
def get_cart(user: Dict[str, Any] = Depends(require_user), client=Depends(get_user_client)):
    return cart_service.get_cart(client, user).to_response()

@router.post("/items")
def add_item(body: AddItemRequest, user: Dict[str, Any] = Depends(require_user), client=Depends(get_user_client)):
    return cart_service.add_item(client, user, body.listing_id, body.quantity)

@router.patch("/items/{line_id}")
def update_item(line_id: str, body: UpdateItemRequest, user: Dict[str, Any] = Depends(require_user), client=Depends(get_user_client)):
    return cart_service.update_item(client, user, line_id, body.quantity)

@router.delete("/items/{line_id}")
def remove_item(line_id: str, user: Dict[str, Any] = Depends(require_user), client=Depends(get_user_client)):
    return cart_service.remove_item(client, user, line_id)

@router.delete("")
def clear_cart(user: Dict[str, Any] = Depends(require_user), client=Depends(get_user_client)):
    return cart_service.clear(client, user)
