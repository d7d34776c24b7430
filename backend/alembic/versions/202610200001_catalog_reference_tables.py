"""catalog reference tables and bigint money columns

Revision ID: 202610200001
Revises: 202610190001
Create Date: 2026-10-20 09:00:01
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "202610200001"
down_revision: Union[str, None] = "202610190001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_PRODUCT_REFERENCES = (
    ("category_id", "categories"),
    ("discount_id", "discounts"),
    ("unit_id", "units"),
    ("brand_id", "brands"),
    ("country_id", "countries"),
)


def _named_table(name: str, *columns: sa.Column) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=20), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        *columns,
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )


def upgrade() -> None:
    _named_table("categories", sa.Column("image", sa.String(length=512), nullable=False, server_default=""))
    _named_table("units")
    _named_table("brands")
    _named_table(
        "countries",
        sa.Column("alpha2", sa.String(length=2), nullable=False),
        sa.Column("alpha3", sa.String(length=3), nullable=False),
    )
    _named_table(
        "discounts",
        sa.Column("discount_percent", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("discount_percent >= 0 AND discount_percent <= 100", name="chk_discount_percent"),
    )

    with op.batch_alter_table("products") as batch:
        for column, table in _PRODUCT_REFERENCES:
            batch.add_column(sa.Column(column, sa.Integer(), nullable=True))
            batch.create_foreign_key(f"fk_products_{column}", table, [column], ["id"], ondelete="SET NULL")
        batch.alter_column("price", type_=sa.BigInteger(), existing_nullable=False)
    op.create_index("idx_products_category", "products", ["category_id"])
    op.create_index("idx_products_brand", "products", ["brand_id"])

    with op.batch_alter_table("orders") as batch:
        batch.alter_column("total", type_=sa.BigInteger(), existing_nullable=False)
    with op.batch_alter_table("order_items") as batch:
        batch.alter_column("total", type_=sa.BigInteger(), existing_nullable=False)

    # the seeded roles were inserted with explicit ids
    if op.get_bind().dialect.name == "postgresql":
        op.execute("SELECT setval('roles_id_seq', (SELECT MAX(id) FROM roles))")


def downgrade() -> None:
    with op.batch_alter_table("order_items") as batch:
        batch.alter_column("total", type_=sa.Integer(), existing_nullable=False)
    with op.batch_alter_table("orders") as batch:
        batch.alter_column("total", type_=sa.Integer(), existing_nullable=False)

    op.drop_index("idx_products_brand", table_name="products")
    op.drop_index("idx_products_category", table_name="products")
    with op.batch_alter_table("products") as batch:
        batch.alter_column("price", type_=sa.Integer(), existing_nullable=False)
        for column, _ in reversed(_PRODUCT_REFERENCES):
            batch.drop_constraint(f"fk_products_{column}", type_="foreignkey")
            batch.drop_column(column)

    for table in ("discounts", "countries", "brands", "units", "categories"):
        op.drop_table(table)
