# product_service/main.py
from decimal import Decimal
from enum import Enum
from itertools import count
from threading import Lock
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from app.utils.logging import get_logger

logger = get_logger(__name__)

app = FastAPI(title="Product Service (dev mock)")


class Category(str, Enum):
    ELECTRONICS = "Electronics"
    CLOTHING = "Clothing"
    BOOKS = "Books"
    HOME_GARDEN = "Home & Garden"
    SPORTS = "Sports"
    BEAUTY = "Beauty"
    OTHER = "Other"


class ProductIn(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: str = Field(..., max_length=500)
    price: Decimal = Field(..., ge=0)
    stock: int = Field(..., ge=0)
    category: Category = Category.OTHER
    image_url: Optional[str] = None
    tags: List[str] = []
    is_active: bool = True


class ProductOut(ProductIn):
    id: int


class ProductPage(BaseModel):
    products: List[ProductOut]
    total: int
    page: int
    limit: int


PRODUCTS: dict[int, ProductOut] = {
    1: ProductOut(id=1, name="Keyboard", description="Mechanical keyboard", price=Decimal("199.99"),
                  stock=25, category=Category.ELECTRONICS),
    2: ProductOut(id=2, name="Mouse", description="Wireless mouse", price=Decimal("49.50"),
                  stock=100, category=Category.ELECTRONICS),
    3: ProductOut(id=3, name="Monitor", description="27 inch IPS monitor", price=Decimal("899.00"),
                  stock=5, category=Category.ELECTRONICS),
    4: ProductOut(id=4, name="Running Shoes", description="Lightweight trainers", price=Decimal("129.00"),
                  stock=0, category=Category.SPORTS),
}

_ids = count(max(PRODUCTS) + 1)
_lock = Lock()


def _get_or_404(product_id: int) -> ProductOut:
    product = PRODUCTS.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@app.get("/products", response_model=ProductPage)
def list_products(
    category: Optional[Category] = None,
    search: Optional[str] = None,
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    include_inactive: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    products = [p for p in PRODUCTS.values() if include_inactive or p.is_active]

    if category:
        products = [p for p in products if p.category == category]
    if search:
        needle = search.lower()
        products = [p for p in products if needle in p.name.lower() or needle in p.description.lower()]
    if min_price is not None:
        products = [p for p in products if p.price >= min_price]
    if max_price is not None:
        products = [p for p in products if p.price <= max_price]

    start = (page - 1) * limit
    return ProductPage(products=products[start:start + limit], total=len(products), page=page, limit=limit)


@app.get("/products/categories", response_model=List[str])
def list_categories():
    return sorted({p.category.value for p in PRODUCTS.values() if p.is_active})


@app.get("/products/{product_id}", response_model=ProductOut)
def get_product(product_id: int):
    #nieaktywne tez zwracamy, klient sam sprawdza is_active
    return _get_or_404(product_id)


@app.post("/products", response_model=ProductOut, status_code=201)
def create_product(payload: ProductIn):
    with _lock:
        product = ProductOut(id=next(_ids), **payload.model_dump())
        PRODUCTS[product.id] = product
    logger.info(f"Created product {product.id}")
    return product


@app.put("/products/{product_id}", response_model=ProductOut)
def update_product(product_id: int, payload: ProductIn):
    _get_or_404(product_id)
    with _lock:
        product = ProductOut(id=product_id, **payload.model_dump())
        PRODUCTS[product_id] = product
    logger.info(f"Updated product {product_id}")
    return product


@app.delete("/products/{product_id}", response_model=ProductOut)
def delete_product(product_id: int):
    # soft delete - pozycje w koszykach zostaja, ale przestaja byc widoczne
    current = _get_or_404(product_id)
    with _lock:
        product = current.model_copy(update={"is_active": False})
        PRODUCTS[product_id] = product
    logger.info(f"Deactivated product {product_id}")
    return product
