"""Catalog reference routes: categories, units, brands, countries, discounts and roles

Reads are public, writes need the admin role. Every resource answers with
``{<singular>: {...}}`` or ``{<plural>: [...]}``.
"""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Dict, List, Type

from storefront.api.deps import require_admin
from storefront.core.database import get_db
from storefront.schemas.catalog import (
    BrandCreate,
    BrandUpdate,
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    CountryCreate,
    CountryResponse,
    CountryUpdate,
    DiscountCreate,
    DiscountResponse,
    DiscountUpdate,
    NamedResponse,
    RoleCreate,
    RoleUpdate,
    UnitCreate,
    UnitUpdate,
)
from storefront.schemas.user import MessageResponse
from storefront.services.auth_service import Identity
from storefront.services.catalog_service import (
    CatalogService,
    brand_service,
    category_service,
    country_service,
    discount_service,
    role_service,
    unit_service,
)


def build_router(
    service: CatalogService,
    create_schema: Type[BaseModel],
    update_schema: Type[BaseModel],
    response_schema: Type[BaseModel],
    singular: str,
    plural: str,
) -> APIRouter:
    """Five CRUD routes for one reference table"""
    router = APIRouter()

    def one(record) -> dict:
        return {singular: response_schema.model_validate(record)}

    @router.get("", response_model=Dict[str, List[response_schema]])
    def list_entries(db: Session = Depends(get_db)):
        return {plural: [response_schema.model_validate(r) for r in service.list_all(db)]}

    @router.get("/{item_id}", response_model=Dict[str, response_schema])
    def get_entry(item_id: int, db: Session = Depends(get_db)):
        return one(service.get(db, item_id))

    @router.post("", response_model=Dict[str, response_schema], status_code=status.HTTP_201_CREATED)
    def create_entry(
        data: create_schema,
        identity: Identity = Depends(require_admin),
        db: Session = Depends(get_db)
    ):
        return one(service.create(db, data))

    @router.patch("/{item_id}", response_model=Dict[str, response_schema])
    def update_entry(
        item_id: int,
        changes: update_schema,
        identity: Identity = Depends(require_admin),
        db: Session = Depends(get_db)
    ):
        return one(service.update(db, item_id, changes))

    @router.delete("/{item_id}", response_model=MessageResponse)
    def delete_entry(
        item_id: int,
        identity: Identity = Depends(require_admin),
        db: Session = Depends(get_db)
    ):
        service.delete(db, item_id)
        return MessageResponse(message=f"{singular} successfully deleted")

    return router


categories = build_router(
    category_service, CategoryCreate, CategoryUpdate, CategoryResponse, "category", "categories"
)
units = build_router(unit_service, UnitCreate, UnitUpdate, NamedResponse, "unit", "units")
brands = build_router(brand_service, BrandCreate, BrandUpdate, NamedResponse, "brand", "brands")
countries = build_router(
    country_service, CountryCreate, CountryUpdate, CountryResponse, "country", "countries"
)
discounts = build_router(
    discount_service, DiscountCreate, DiscountUpdate, DiscountResponse, "discount", "discounts"
)
roles = build_router(role_service, RoleCreate, RoleUpdate, NamedResponse, "role", "roles")
