from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship

from app.data.database import Base


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    #slaba referencja do produktu z product-service, bez FK
    product_id = Column(Integer, nullable=False)

    quantity = Column(Integer, nullable=False)
    #snapshot ceny z momentu dodania / ostatniej aktualizacji
    price = Column(Numeric(10, 2), nullable=False)

    position = Column(Integer, nullable=False)
    added_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    cart = relationship("CartModel", back_populates="items")

    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="uq_cart_product"),
        CheckConstraint("quantity >= 1", name="ck_cart_item_quantity_pos"),
        CheckConstraint("price >= 0", name="ck_cart_item_price_nonneg"),
    )
