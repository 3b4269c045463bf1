from decimal import Decimal
from typing import Dict, Any, Protocol

from sqlalchemy.orm import Session

from app.data.models.cart import CartModel
from app.domain.errors import (
    CartConflict,
    CartNotFound,
    InsufficientStock,
    InvalidQuantity,
    ItemNotFound,
    ProductUnavailable,
)
from app.domain.schemas import ProductInfo
from app.repos.cart_repo import CartRepo
from app.services.lock_service import LockService
from app.utils.retry import conflict_retry
from app.utils.logging import get_logger

logger = get_logger(__name__)


class ProductSource(Protocol):
    def find_by_id(self, product_id: int) -> ProductInfo | None: ...


class CartService:
    """
    Use case'y koszyka, prosty podzial cqrs
    commands (add, update, remove, clear) - walidacja wzgledem produktu, potem zapis
    query (get) tylko odczyt, ukrywa pozycje z nieaktywnymi produktami

    Kazda komenda to jedna sekwencja read-validate-write pod lockiem koszyka usera,
    przy bledzie rollback - koszyk zostaje taki jak przed wywolaniem.
    """

    def __init__(
        self,
        db: Session,
        product_client: ProductSource,
        lock_service: LockService,
    ):
        self.repo = CartRepo(db)
        self.product_client = product_client
        self.lock_service = lock_service

    #query - odczyt
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)

        if not cart:
            return self._empty_view(user_id)

        return self._build_view(cart)

    #commands
    def add_to_cart(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        self._check_quantity(quantity)
        logger.info(f"Dodawanie produktu {product_id} x{quantity} do koszyka usera {user_id}")
        return self._run_locked(user_id, self._add, product_id, quantity)

    def update_cart_item(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        self._check_quantity(quantity)
        logger.info(f"Zmiana ilosci produktu {product_id} na {quantity} w koszyku usera {user_id}")
        return self._run_locked(user_id, self._update, product_id, quantity)

    def remove_from_cart(self, user_id: int, product_id: int) -> Dict[str, Any]:
        logger.info(f"Usuwanie produktu {product_id} z koszyka usera {user_id}")
        return self._run_locked(user_id, self._remove, product_id)

    def clear_cart(self, user_id: int) -> Dict[str, Any]:
        logger.info(f"Czyszczenie koszyka usera {user_id}")
        return self._run_locked(user_id, self._clear)

    def _run_locked(self, user_id: int, action, *args) -> Dict[str, Any]:
        with self.lock_service.cart_lock(user_id):
            try:
                action(user_id, *args)
            except Exception as e:
                # nic nie zostaje w sesji po odrzuconej operacji
                self.repo.rollback()
                logger.warning(f"Operacja {action.__name__} na koszyku usera {user_id} odrzucona: {e}")
                raise

            return self.get_cart(user_id)

    @conflict_retry()
    def _add(self, user_id: int, product_id: int, quantity: int) -> None:
        product = self._get_active_product(product_id)

        if product.stock < quantity:
            raise InsufficientStock(product_id, product.stock)

        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            logger.info(f"Tworze nowy koszyk dla usera {user_id}")
            cart = self.repo.create_cart(user_id)

        existing_item = self.repo.get_item(cart, product_id)
        if existing_item:
            # sprawdzamy laczna ilosc, nie tylko dokladana
            candidate = existing_item.quantity + quantity
            if candidate > product.stock:
                raise InsufficientStock(
                    product_id,
                    product.stock,
                    f"Cannot add more items. Total would exceed available stock ({product.stock})",
                )
            logger.info(
                f"Produkt {product_id} juz jest w koszyku, zwiekszam ilosc "
                f"z {existing_item.quantity} do {candidate}"
            )

        self.repo.upsert_item(cart, product_id, quantity, product.price)
        self._commit(cart)

    @conflict_retry()
    def _update(self, user_id: int, product_id: int, quantity: int) -> None:
        cart = self._require_cart(user_id)

        if not self.repo.get_item(cart, product_id):
            raise ItemNotFound(product_id)

        product = self._get_active_product(product_id)

        # ilosc absolutna, zastepuje poprzednia
        if quantity > product.stock:
            raise InsufficientStock(product_id, product.stock)

        self.repo.set_item_quantity(cart, product_id, quantity, product.price)
        self._commit(cart)

    @conflict_retry()
    def _remove(self, user_id: int, product_id: int) -> None:
        cart = self._require_cart(user_id)
        self.repo.remove_item(cart, product_id)
        self._commit(cart)

    @conflict_retry()
    def _clear(self, user_id: int) -> None:
        cart = self._require_cart(user_id)
        self.repo.clear(cart)
        self._commit(cart)

    def _commit(self, cart: CartModel) -> None:
        # Optimistic locking, warunek na wersje
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=cart.version,
            new_data={"version": cart.version + 1},
        )

        if rowcount == 0:
            self.repo.rollback()
            raise CartConflict(
                "Konflikt wspolbieznosci - koszyk zostal zmodyfikowany przez inna operacje"
            )

        self.repo.commit()
        logger.info(
            f"Koszyk {cart.id} zapisany: {cart.total_items} szt., suma {cart.total_price}, "
            f"wersja {cart.version}"
        )

    def _require_cart(self, user_id: int) -> CartModel:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            raise CartNotFound(user_id)
        return cart

    def _get_active_product(self, product_id: int) -> ProductInfo:
        product = self.product_client.find_by_id(product_id)
        if product is None or not product.is_active:
            raise ProductUnavailable(product_id)
        return product

    @staticmethod
    def _check_quantity(quantity: int) -> None:
        if quantity < 1:
            raise InvalidQuantity(quantity)

    def _build_view(self, cart: CartModel) -> Dict[str, Any]:
        # produkty sprawdzane na zywo, nieaktywne pozycje zostaja w bazie ale ich nie pokazujemy
        items = []
        for item in cart.items:
            product = self.product_client.find_by_id(item.product_id)
            if product is None or not product.is_active:
                continue
            items.append(
                {
                    "product_id": item.product_id,
                    "name": product.name,
                    "quantity": item.quantity,
                    "price": item.price,
                    "added_at": item.added_at,
                }
            )

        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "items": items,
            "total_items": sum(i["quantity"] for i in items),
            "total_price": sum((i["price"] * i["quantity"] for i in items), Decimal("0.00")),
            "is_active": cart.is_active,
        }

    @staticmethod
    def _empty_view(user_id: int) -> Dict[str, Any]:
        return {
            "cart_id": None,
            "user_id": user_id,
            "items": [],
            "total_items": 0,
            "total_price": Decimal("0.00"),
            "is_active": True,
        }
