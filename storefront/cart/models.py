"""
Modèles du panier (pas de stockage, pas de Stripe).
- CartItem: une ligne, identifiée par (product_id, variant).
- CartKey: clé d'identité d'une ligne.
"""
from decimal import Decimal
from typing import NamedTuple, Optional
from pydantic import BaseModel, Field, field_validator

# module storefront.cart.models
class CartKey(NamedTuple):
    product_id: str
    variant: str = ""


class CartItem(BaseModel):
    product_id: str = Field(min_length=1)
    variant: str = ""
    name: str
    unit_price: Decimal = Field(ge=0, decimal_places=2)
    quantity: int = Field(default=1, ge=1)
    image: Optional[str] = None
    price_ref: Optional[str] = None
    category: Optional[str] = None

    @field_validator("product_id", "variant", mode="before")
    @classmethod
    def _strip(cls, v):
        return str(v or "").strip()

    @property
    def key(self) -> CartKey:
        return CartKey(self.product_id, self.variant)

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity
