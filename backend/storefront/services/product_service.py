"""Product service - catalog listing and admin maintenance"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Dict, List, Optional, Tuple

from storefront.core.exceptions import (
    DatabaseError,
    EditConflictError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from storefront.models.catalog import Brand, Category, Country, Discount, Unit
from storefront.models.order import OrderItem
from storefront.models.product import Product
from storefront.schemas.product import Metadata, ProductCreate, ProductFilters, ProductUpdate
import logging

logger = logging.getLogger(__name__)

REFERENCES = {
    "category_id": (Category, "category"),
    "discount_id": (Discount, "discount"),
    "unit_id": (Unit, "unit"),
    "brand_id": (Brand, "brand"),
    "country_id": (Country, "country"),
}
NOT_NULL_FIELDS = {"name", "price", "description", "upc", "quantity", "image", "step"}


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class ProductService:

    @staticmethod
    def list_products(db: Session, filters: Optional[ProductFilters] = None) -> Tuple[List[Product], Metadata]:
        """
        One page of products matching ``filters``

        Name matches case-insensitively anywhere in the product name; brand
        matches any of the given ids. Rows are ordered by the sort column with
        ties broken by id.

        Raises:
            ValidationFailedError: page, page_size or sort out of range
        """
        filters = filters or ProductFilters()
        errors = filters.validation_errors()
        if errors:
            raise ValidationFailedError(errors)

        query = db.query(Product)
        if filters.name:
            query = query.filter(Product.name.ilike(_like_pattern(filters.name), escape="\\"))
        if filters.category:
            query = query.filter(Product.category_id == filters.category)
        if filters.brand:
            query = query.filter(Product.brand_id.in_(filters.brand))
        if filters.country:
            query = query.filter(Product.country_id == filters.country)

        total = query.count()
        column = getattr(Product, filters.sort_column)
        ordering = column.desc() if filters.descending else column.asc()
        products = (
            query.order_by(ordering, Product.id.asc())
            .offset(filters.offset)
            .limit(filters.page_size)
            .all()
        )
        return products, Metadata.calculate(total, filters.page, filters.page_size)

    @staticmethod
    def get_product(db: Session, product_id: int) -> Product:
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise ResourceNotFoundError("Product")
        return product

    @staticmethod
    def get_product_by_upc(db: Session, upc: str) -> Product:
        product = db.query(Product).filter(Product.upc == upc).first()
        if not product:
            raise ResourceNotFoundError("Product")
        return product

    @staticmethod
    def _check_references(db: Session, values: dict) -> Dict[str, str]:
        errors = {}
        for field, (model, label) in REFERENCES.items():
            ref_id = values.get(field)
            if ref_id is not None and db.get(model, ref_id) is None:
                errors[field] = f"must reference an existing {label}"
        return errors

    @staticmethod
    def _commit(db: Session, upc: Optional[str], product_id: Optional[int] = None) -> None:
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if upc is not None:
                taken = db.query(Product.id).filter(Product.upc == upc, Product.id != product_id).first()
                if taken is not None:
                    raise ValidationFailedError({"upc": "a product with this upc already exists"}) from exc
            logger.error(f"Failed to save product: {exc}")
            raise DatabaseError() from exc

    @staticmethod
    def create_product(db: Session, data: ProductCreate) -> Product:
        """
        Add a product to the catalog

        Raises:
            ValidationFailedError: UPC already used or an unknown reference id
        """
        values = data.model_dump()
        errors = ProductService._check_references(db, values)
        if errors:
            raise ValidationFailedError(errors)

        product = Product(**values)
        db.add(product)
        ProductService._commit(db, data.upc)

        db.refresh(product)
        logger.info(f"Created product {product.id} ({product.upc})")
        return product

    @staticmethod
    def update_product(db: Session, product_id: int, changes: ProductUpdate) -> Product:
        """
        Apply a partial update

        Raises:
            ResourceNotFoundError: Unknown product
            ValidationFailedError: UPC already used or an unknown reference id
        """
        product = ProductService.get_product(db, product_id)
        values = {
            field: value
            for field, value in changes.model_dump(exclude_unset=True).items()
            if value is not None or field not in NOT_NULL_FIELDS
        }
        errors = ProductService._check_references(db, values)
        if errors:
            raise ValidationFailedError(errors)

        for field, value in values.items():
            setattr(product, field, value)
        ProductService._commit(db, values.get("upc"), product_id)

        db.refresh(product)
        logger.info(f"Updated product {product_id}")
        return product

    @staticmethod
    def delete_product(db: Session, product_id: int) -> None:
        """
        Raises:
            ResourceNotFoundError: Unknown product
            EditConflictError: Product appears in an order
        """
        product = ProductService.get_product(db, product_id)
        if db.query(OrderItem.id).filter(OrderItem.product_id == product_id).first() is not None:
            raise EditConflictError("Product is part of existing orders")
        db.delete(product)
        db.commit()
        logger.info(f"Deleted product {product_id}")


product_service = ProductService()
