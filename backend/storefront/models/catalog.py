"""Catalog reference tables: categories, units, brands, countries and discounts"""

from sqlalchemy import Column, Integer, String, Float, Text, DateTime, CheckConstraint
from sqlalchemy.sql import func
from storefront.core.database import Base


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(20), unique=True, nullable=False)
    description = Column(Text, nullable=False)
    image = Column(String(512), nullable=False, default="")

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}')>"


class Unit(Base):
    """Unit a product is sold in (kg, piece, litre)"""

    __tablename__ = "units"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(20), unique=True, nullable=False)
    description = Column(Text, nullable=False)


class Brand(Base):
    __tablename__ = "brands"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(20), unique=True, nullable=False)
    description = Column(Text, nullable=False)


class Country(Base):
    """Country of origin with its ISO 3166 codes"""

    __tablename__ = "countries"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(20), unique=True, nullable=False)
    description = Column(Text, nullable=False)
    alpha2 = Column(String(2), nullable=False)
    alpha3 = Column(String(3), nullable=False)


class Discount(Base):
    """Percentage discount valid between started_at and ended_at"""

    __tablename__ = "discounts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(20), unique=True, nullable=False)
    description = Column(Text, nullable=False)
    discount_percent = Column(Float, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    started_at = Column(DateTime(timezone=True), nullable=False)
    ended_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint("discount_percent >= 0 AND discount_percent <= 100", name="chk_discount_percent"),
    )

    def __repr__(self):
        return f"<Discount(id={self.id}, name='{self.name}', percent={self.discount_percent})>"
