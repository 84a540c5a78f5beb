"""create catalog tables

Revision ID: 0001
Revises:
Create Date: 2024-01-01 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "suppliers",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("api_key", sa.String()),
        sa.Column("api_endpoint", sa.String()),
        sa.Column("is_active", sa.Boolean()),
        *_timestamps(),
    )
    op.create_index("ix_suppliers_name", "suppliers", ["name"])

    op.create_table(
        "categories",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False, unique=True),
        sa.Column("description", sa.Text()),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("cost_price", sa.Float()),
        sa.Column("compare_at_price", sa.Float()),
        sa.Column("profit_margin", sa.Float()),
        sa.Column("sku", sa.String()),
        sa.Column("barcode", sa.String()),
        sa.Column("inventory", sa.Integer()),
        sa.Column("weight", sa.Float()),
        sa.Column("dimensions", sa.String()),
        sa.Column("is_published", sa.Boolean()),
        sa.Column("category_id", sa.String(), sa.ForeignKey("categories.id"), nullable=False),
        sa.Column("supplier_id", sa.String(), sa.ForeignKey("suppliers.id")),
        sa.Column("supplier_product_id", sa.String()),
        *_timestamps(),
        sa.UniqueConstraint("supplier_id", "supplier_product_id", name="uq_products_supplier_product"),
    )
    op.create_index("ix_products_category_id", "products", ["category_id"])
    op.create_index("ix_products_supplier_id", "products", ["supplier_id"])
    op.create_index("ix_products_supplier_product", "products", ["supplier_id", "supplier_product_id"])

    op.create_table(
        "product_images",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("product_id", sa.String(), sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        sa.Column("url", sa.String(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("alt", sa.String()),
        *_timestamps(),
    )
    op.create_index("ix_product_images_product_id", "product_images", ["product_id"])

    op.create_table(
        "product_variants",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("product_id", sa.String(), sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("sku", sa.String()),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("cost_price", sa.Float()),
        sa.Column("compare_at_price", sa.Float()),
        sa.Column("inventory", sa.Integer()),
        sa.Column("type", sa.String()),
        sa.Column("options", sa.Text()),
        sa.Column("image", sa.String()),
        *_timestamps(),
    )
    op.create_index("ix_product_variants_product_id", "product_variants", ["product_id"])

    op.create_table(
        "admin_logs",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("details", sa.Text()),
        sa.Column("user_id", sa.String()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_admin_logs_action", "admin_logs", ["action"])
    op.create_index("ix_admin_logs_user_id", "admin_logs", ["user_id"])


def downgrade() -> None:
    op.drop_table("admin_logs")
    op.drop_table("product_variants")
    op.drop_table("product_images")
    op.drop_table("products")
    op.drop_table("categories")
    op.drop_table("suppliers")
