# app/domain/errors.py


class CartError(Exception):
    """Bledy biznesowe koszyka - zawsze do obsluzenia przez wywolujacego."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ProductUnavailable(CartError):
    status_code = 404

    def __init__(self, product_id: int):
        super().__init__("Product not found or inactive")
        self.product_id = product_id


class InsufficientStock(CartError):
    status_code = 400

    def __init__(self, product_id: int, available: int, message: str | None = None):
        super().__init__(message or f"Insufficient stock. Available: {available}")
        self.product_id = product_id
        self.available = available


class CartNotFound(CartError):
    status_code = 404

    def __init__(self, user_id: int):
        super().__init__("Cart not found")
        self.user_id = user_id


class ItemNotFound(CartError):
    status_code = 404

    def __init__(self, product_id: int):
        super().__init__("Item not found in cart")
        self.product_id = product_id


class InvalidQuantity(CartError):
    status_code = 400

    def __init__(self, quantity: int):
        super().__init__("Quantity must be at least 1")
        self.quantity = quantity


class CartConcurrencyError(Exception):
    """Blad infrastruktury: nie udalo sie zserializowac operacji na koszyku."""

    status_code = 409


class CartLocked(CartConcurrencyError):
    pass


class CartConflict(CartConcurrencyError):
    pass
