"""Catalog product routes"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List

from storefront.api.deps import require_admin
from storefront.core.database import get_db
from storefront.core.exceptions import ValidationFailedError
from storefront.schemas.product import (
    ProductCreate,
    ProductEnvelope,
    ProductFilters,
    ProductListEnvelope,
    ProductResponse,
    ProductUpdate,
)
from storefront.schemas.user import MessageResponse
from storefront.services.auth_service import Identity
from storefront.services.product_service import product_service

router = APIRouter()
upc_router = APIRouter()


def _parse_ids(values: List[str]) -> List[int]:
    # ?brand=1&brand=2 and ?brand=1,2 are both accepted
    try:
        return [int(part) for value in values for part in value.split(",") if part.strip()]
    except ValueError as exc:
        raise ValidationFailedError({"brand": "must be a list of integers"}) from exc


@router.get("", response_model=ProductListEnvelope)
def list_products(
    name: str = "",
    category: int = 0,
    brand: List[str] = Query([]),
    country: int = 0,
    page: int = 1,
    page_size: int = 20,
    sort: str = "id",
    db: Session = Depends(get_db)
):
    """
    Filtered, paginated catalog listing

    Args:
        name: Case-insensitive substring of the product name
        category, country: Reference ids, 0 matches any
        brand: Brand ids, repeated or comma separated
        sort: One of id, name, price; prefix with ``-`` for descending
    """
    filters = ProductFilters(
        name=name,
        category=category,
        brand=_parse_ids(brand),
        country=country,
        page=page,
        page_size=page_size,
        sort=sort,
    )
    products, metadata = product_service.list_products(db, filters)
    return ProductListEnvelope(
        products=[ProductResponse.model_validate(p) for p in products],
        metadata=metadata,
    )


@router.get("/{product_id}", response_model=ProductEnvelope)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return ProductEnvelope(product=ProductResponse.model_validate(product_service.get_product(db, product_id)))


@router.post("", response_model=ProductEnvelope, status_code=status.HTTP_201_CREATED)
def create_product(
    data: ProductCreate,
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Add a product to the catalog (admin only)"""
    product = product_service.create_product(db, data)
    return ProductEnvelope(product=ProductResponse.model_validate(product))


@router.patch("/{product_id}", response_model=ProductEnvelope)
def update_product(
    product_id: int,
    changes: ProductUpdate,
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    product = product_service.update_product(db, product_id, changes)
    return ProductEnvelope(product=ProductResponse.model_validate(product))


@router.delete("/{product_id}", response_model=MessageResponse)
def delete_product(
    product_id: int,
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    product_service.delete_product(db, product_id)
    return MessageResponse(message="product successfully deleted")


@upc_router.get("/{upc}", response_model=ProductEnvelope)
def get_product_by_upc(upc: str, db: Session = Depends(get_db)):
    """Look a product up by its barcode"""
    return ProductEnvelope(product=ProductResponse.model_validate(product_service.get_product_by_upc(db, upc)))
