"""Catalog product model"""

from sqlalchemy import BigInteger, Column, Integer, String, Float, Text, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.sql import func
from storefront.core.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    price = Column(BigInteger, nullable=False)  # minor currency units
    description = Column(Text, nullable=False, default="")
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    upc = Column(String(32), unique=True, nullable=False)
    discount_id = Column(Integer, ForeignKey("discounts.id", ondelete="SET NULL"), nullable=True)
    quantity = Column(Integer, nullable=False, default=0)
    unit_id = Column(Integer, ForeignKey("units.id", ondelete="SET NULL"), nullable=True)
    image = Column(String(512), nullable=False, default="")
    brand_id = Column(Integer, ForeignKey("brands.id", ondelete="SET NULL"), nullable=True)
    country_id = Column(Integer, ForeignKey("countries.id", ondelete="SET NULL"), nullable=True)
    step = Column(Float, nullable=False, default=1.0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("price >= 0", name="chk_product_price"),
        CheckConstraint("quantity >= 0", name="chk_product_quantity"),
        CheckConstraint("step > 0", name="chk_product_step"),
        Index("idx_products_category", "category_id"),
        Index("idx_products_brand", "brand_id"),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', price={self.price})>"
