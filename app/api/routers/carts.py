#app/api/routers/carts.py
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.orm import Session

from app.data.database import get_db
from app.domain.errors import CartError, CartConcurrencyError
from app.domain.schemas import (
    ItemIn,
    ItemUpdateIn,
    CartOut,
)
from app.services.cart_service import CartService
from app.services.product_client import ProductClient
from app.services.lock_service import LockService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_product_client() -> ProductClient:
    return ProductClient()


@lru_cache
def get_lock_service() -> LockService:
    #jeden klient redis (pula polaczen) na proces
    return LockService()


def get_service(
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
    lock_service: LockService = Depends(get_lock_service),
) -> CartService:
    return CartService(
        db=db,
        product_client=product_client,
        lock_service=lock_service,
    )


def _to_http(e: Exception) -> HTTPException:
    if isinstance(e, CartError):
        return HTTPException(status_code=e.status_code, detail=e.message)
    return HTTPException(status_code=409, detail=str(e))


@router.get("", response_model=CartOut)
def get_cart(
    user_id: int = Query(..., gt=0),
    svc: CartService = Depends(get_service),
):
    return svc.get_cart(user_id)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    user_id: int = Query(..., gt=0),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.add_to_cart(
            user_id=user_id,
            product_id=payload.product_id,
            quantity=payload.quantity,
        )
    except (CartError, CartConcurrencyError) as e:
        raise _to_http(e)


@router.put("/items/{product_id}", response_model=CartOut)
def update_item(
    payload: ItemUpdateIn,
    product_id: int = Path(..., gt=0),
    user_id: int = Query(..., gt=0),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.update_cart_item(user_id, product_id, payload.quantity)
    except (CartError, CartConcurrencyError) as e:
        raise _to_http(e)


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_item(
    product_id: int = Path(..., gt=0),
    user_id: int = Query(..., gt=0),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.remove_from_cart(user_id, product_id)
    except (CartError, CartConcurrencyError) as e:
        raise _to_http(e)


@router.delete("", response_model=CartOut)
def clear_cart(
    user_id: int = Query(..., gt=0),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.clear_cart(user_id)
    except (CartError, CartConcurrencyError) as e:
        raise _to_http(e)
