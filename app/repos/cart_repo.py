# app/repos/cart_repo.py
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.orm import Session

from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
from app.domain.errors import ItemNotFound

_CENT = Decimal("0.01")


def to_cents(price) -> Decimal:
    #kolumna ma 2 miejsca po przecinku, sumy liczymy z tej samej wartosci co w bazie
    return Decimal(price).quantize(_CENT, rounding=ROUND_HALF_UP)


class CartRepo:
    """
    Magazyn koszykow: jeden koszyk na usera, lista pozycji w kolejnosci dodania.
    Kazda operacja modyfikujaca konczy sie przeliczeniem sum (recompute_totals),
    commit robi serwis.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_cart_by_user(self, user_id: int) -> CartModel | None:
        return self.db.query(CartModel).filter(CartModel.user_id == user_id).first()

    def create_cart(self, user_id: int) -> CartModel:
        cart = CartModel(
            user_id=user_id,
            total_items=0,
            total_price=Decimal("0.00"),
            is_active=True,
            version=1,
        )
        self.db.add(cart)
        #flush zeby dostac id, commit dopiero po walidacji
        self.db.flush()
        return cart

    def get_item(self, cart: CartModel, product_id: int) -> CartItemModel | None:
        return next((i for i in cart.items if i.product_id == product_id), None)

    def upsert_item(
        self,
        cart: CartModel,
        product_id: int,
        quantity: int,
        price: Decimal,
    ) -> CartItemModel:
        item = self.get_item(cart, product_id)

        if item:
            #dodajemy do istniejacej ilosci, cena odswiezona
            item.quantity += quantity
            item.price = to_cents(price)
        else:
            position = max((i.position for i in cart.items), default=-1) + 1
            item = CartItemModel(
                product_id=product_id,
                quantity=quantity,
                price=to_cents(price),
                position=position,
            )
            cart.items.append(item)

        self.recompute_totals(cart)
        return item

    def set_item_quantity(
        self,
        cart: CartModel,
        product_id: int,
        quantity: int,
        price: Decimal,
    ) -> CartItemModel:
        item = self.get_item(cart, product_id)
        if not item:
            raise ItemNotFound(product_id)

        item.quantity = quantity
        item.price = to_cents(price)

        self.recompute_totals(cart)
        return item

    def remove_item(self, cart: CartModel, product_id: int) -> None:
        item = self.get_item(cart, product_id)
        if not item:
            raise ItemNotFound(product_id)

        #delete-orphan usuwa wiersz przy flushu
        cart.items.remove(item)

        self.recompute_totals(cart)

    def clear(self, cart: CartModel) -> None:
        cart.items.clear()
        self.recompute_totals(cart)

    def recompute_totals(self, cart: CartModel) -> None:
        cart.total_items = sum(i.quantity for i in cart.items)
        cart.total_price = sum(
            (Decimal(i.price) * i.quantity for i in cart.items),
            Decimal("0.00"),
        ).quantize(_CENT)

    def update_cart_version(self, cart_id: int, old_version: int, new_data: dict) -> int:
        # Optimistic locking
        # update carts set version = 2 where id = 1 and version = 1
        return (
            self.db.query(CartModel)
            .filter(CartModel.id == cart_id, CartModel.version == old_version)
            .update(new_data, synchronize_session="evaluate")
        )

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
