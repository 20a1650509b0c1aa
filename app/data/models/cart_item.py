from sqlalchemy import Column, Integer, ForeignKey, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship

from app.data.database import Base


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    # no FK: the product can leave the catalog while still sitting in a cart
    product_id = Column(Integer, nullable=False)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)

    cart = relationship("CartModel", back_populates="items")
    product = relationship(
        "ProductModel",
        primaryjoin="foreign(CartItemModel.product_id) == ProductModel.id",
        viewonly=True,
    )

    __table_args__ = (UniqueConstraint("cart_id", "product_id", name="u_cart_product"),)
