import os

# przed importem app.*, zeby settings nie wskazywaly na postgresa z docker-compose
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from decimal import Decimal

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.api.routers import carts
from app.data import models  # noqa: F401
from app.data.database import Base, get_db
from app.domain.schemas import ProductInfo
from app.main import create_app
from app.services.cart_service import CartService
from app.services.lock_service import LockService


class FakeProductCatalog:
    """Katalog produktow w pamieci, ten sam kontrakt co ProductClient.find_by_id."""

    def __init__(self):
        self.products: dict[int, ProductInfo] = {}
        self.lookups: list[int] = []

    def put(self, product_id: int, price="10.00", stock=10, is_active=True, name=None) -> ProductInfo:
        product = ProductInfo(
            id=product_id,
            name=name or f"Product {product_id}",
            price=Decimal(str(price)),
            stock=stock,
            is_active=is_active,
        )
        self.products[product_id] = product
        return product

    def set(self, product_id: int, **changes) -> None:
        self.products[product_id] = self.products[product_id].model_copy(update=changes)

    def find_by_id(self, product_id: int) -> ProductInfo | None:
        self.lookups.append(product_id)
        product = self.products.get(product_id)
        return product.model_copy() if product else None


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'cart.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def products():
    return FakeProductCatalog()


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def lock_service(redis_client):
    return LockService(client=redis_client)


@pytest.fixture
def service(db, products, lock_service):
    return CartService(db=db, product_client=products, lock_service=lock_service)


@pytest.fixture
def test_client(session_factory, products, lock_service):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[carts.get_product_client] = lambda: products
    app.dependency_overrides[carts.get_lock_service] = lambda: lock_service

    return TestClient(app)
