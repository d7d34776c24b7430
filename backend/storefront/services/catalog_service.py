"""Catalog service - CRUD for the reference tables products point at"""

from typing import Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.config import settings
from storefront.core.exceptions import (
    DatabaseError,
    EditConflictError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from storefront.models.catalog import Brand, Category, Country, Discount, Unit
from storefront.models.product import Product
from storefront.models.user import Role, User
from storefront.schemas.catalog import as_utc
import logging

logger = logging.getLogger(__name__)


def discount_window_errors(discount: Discount) -> Dict[str, str]:
    if as_utc(discount.ended_at) <= as_utc(discount.started_at):
        return {"ended_at": "must be later than started_at"}
    return {}


class CatalogService:
    """
    CRUD over one reference table.

    ``references`` are foreign-key columns cleared when an entry is deleted,
    ``guards`` are foreign-key columns whose rows block a delete, and
    ``check`` returns field errors for an entry about to be saved.
    """

    def __init__(
        self,
        model,
        resource: str,
        references: Sequence = (),
        guards: Sequence = (),
        check: Optional[Callable[[object], Dict[str, str]]] = None,
    ):
        self.model = model
        self.resource = resource
        self.references = references
        self.guards = guards
        self.check = check

    def list_all(self, db: Session) -> List:
        return db.query(self.model).order_by(self.model.id).all()

    def get(self, db: Session, item_id: int):
        record = db.query(self.model).filter(self.model.id == item_id).first()
        if not record:
            raise ResourceNotFoundError(self.resource)
        return record

    def exists(self, db: Session, item_id: int) -> bool:
        return db.query(self.model.id).filter(self.model.id == item_id).first() is not None

    def create(self, db: Session, data: BaseModel):
        """
        Raises:
            ValidationFailedError: Name taken or the entry fails its check
        """
        values = data.model_dump()
        record = self.model(**values)
        self._validate(db, record)
        db.add(record)
        self._commit(db, values)
        db.refresh(record)
        logger.info(f"Created {self.resource.lower()} {record.id} ({record.name})")
        return record

    def update(self, db: Session, item_id: int, changes: BaseModel):
        """Apply the fields present in ``changes``; nulls leave a field as is."""
        record = self.get(db, item_id)
        values = {k: v for k, v in changes.model_dump(exclude_unset=True).items() if v is not None}
        for field, value in values.items():
            setattr(record, field, value)
        self._validate(db, record)
        self._commit(db, values)
        db.refresh(record)
        logger.info(f"Updated {self.resource.lower()} {item_id}")
        return record

    def delete(self, db: Session, item_id: int) -> None:
        """
        Raises:
            ResourceNotFoundError: Unknown entry
            EditConflictError: Entry still referenced through a guard
        """
        record = self.get(db, item_id)
        for column in self.guards:
            if db.query(column).filter(column == item_id).first() is not None:
                raise EditConflictError(f"{self.resource} is still in use")

        for column in self.references:
            db.execute(
                update(column.class_)
                .where(column == item_id)
                .values({column.key: None})
                .execution_options(synchronize_session=False)
            )
        db.delete(record)
        db.commit()
        logger.info(f"Deleted {self.resource.lower()} {item_id}")

    def _validate(self, db: Session, record) -> None:
        errors = self.check(record) if self.check else {}
        if errors:
            db.rollback()
            raise ValidationFailedError(errors)

    def _commit(self, db: Session, values: dict) -> None:
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            name = values.get("name")
            if name is not None and db.query(self.model.id).filter(self.model.name == name).first() is not None:
                raise ValidationFailedError(
                    {"name": f"a {self.resource.lower()} with this name already exists"}
                ) from exc
            logger.error(f"Failed to save {self.resource.lower()}: {exc}")
            raise DatabaseError() from exc


class RoleService(CatalogService):
    """Roles are guarded by their users; the configured admin and customer roles stay."""

    def delete(self, db: Session, item_id: int) -> None:
        if item_id in (settings.ADMIN_ROLE_ID, settings.CUSTOMER_ROLE_ID):
            self.get(db, item_id)
            raise EditConflictError("Built-in roles cannot be deleted")
        super().delete(db, item_id)


category_service = CatalogService(Category, "Category", references=(Product.category_id,))
unit_service = CatalogService(Unit, "Unit", references=(Product.unit_id,))
brand_service = CatalogService(Brand, "Brand", references=(Product.brand_id,))
country_service = CatalogService(Country, "Country", references=(Product.country_id,))
discount_service = CatalogService(
    Discount, "Discount", references=(Product.discount_id,), check=discount_window_errors
)
role_service = RoleService(Role, "Role", guards=(User.role_id,))
