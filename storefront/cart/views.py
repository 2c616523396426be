# module storefront.cart.views

"""Endpoints du panier.
- GET /api/v1/cart: contenu, total et nombre d'articles.
- POST /items, PATCH /items/{product_id}, DELETE /items/{product_id}: mutations (variant en query).
- DELETE /api/v1/cart: vide le panier; POST /toggle: bascule l'affichage du tiroir.
Le panier est résolu par get_cart_store (acheteur connecté ou cookie invité).
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from storefront.app_setup.dependencies import get_cart_store
from .models import CartItem, CartKey
from .store import CartStore

router = APIRouter(prefix="/api/v1/cart", tags=["Cart API"])


class AddItemBody(BaseModel):
    item: CartItem
    # absent: la quantité portée par l'article fait foi
    quantity: Optional[int] = None


class QuantityBody(BaseModel):
    quantity: int = Field(description="<= 0 supprime la ligne")


@router.get("")
def get_cart(cart: CartStore = Depends(get_cart_store)) -> Dict[str, Any]:
    return cart.to_dict()

@router.post("/items")
def add_item(body: AddItemBody, cart: CartStore = Depends(get_cart_store)) -> Dict[str, Any]:
    quantity = body.quantity if body.quantity is not None else body.item.quantity
    cart.add_item(body.item, quantity)
    return cart.to_dict()

@router.patch("/items/{product_id}")
def update_item_quantity(
    product_id: str,
    body: QuantityBody,
    variant: str = "",
    cart: CartStore = Depends(get_cart_store),
) -> Dict[str, Any]:
    cart.update_quantity(CartKey(product_id.strip(), variant.strip()), body.quantity)
    return cart.to_dict()

@router.delete("/items/{product_id}")
def remove_item(product_id: str, variant: str = "", cart: CartStore = Depends(get_cart_store)) -> Dict[str, Any]:
    cart.remove_item(CartKey(product_id.strip(), variant.strip()))
    return cart.to_dict()

@router.delete("")
def clear_cart(cart: CartStore = Depends(get_cart_store)) -> Dict[str, Any]:
    cart.clear()
    return cart.to_dict()

@router.post("/toggle")
def toggle_cart(cart: CartStore = Depends(get_cart_store)) -> Dict[str, Any]:
    # le drapeau n'est pas persisté: seul l'état renvoyé compte pour le front
    return {"is_open": cart.toggle_visibility()}
