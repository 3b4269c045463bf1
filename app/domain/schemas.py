# app/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List
from decimal import Decimal
from datetime import datetime


class ItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi być > 0)")
    quantity: int = Field(..., ge=1, description="Ilość produktu (co najmniej 1)")


class ItemUpdateIn(BaseModel):
    """Schema dla zmiany ilosci produktu w koszyku."""

    quantity: int = Field(..., ge=1, description="Nowa ilość produktu (co najmniej 1)")


class ProductInfo(BaseModel):
    """Produkt z product-service, tylko pola potrzebne koszykowi."""

    id: int
    name: str | None = None
    price: Decimal = Field(..., ge=0)
    stock: int = Field(..., ge=0)
    is_active: bool = True


class CartItemOut(BaseModel):
    product_id: int
    name: str | None = None
    quantity: int
    price: Decimal
    added_at: datetime | None = None


class CartOut(BaseModel):
    """Widok koszyka (response). Pusty koszyk ma cart_id = None."""

    cart_id: int | None = None
    user_id: int
    items: List[CartItemOut]
    total_items: int
    total_price: Decimal
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)
