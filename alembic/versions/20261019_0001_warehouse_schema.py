"""warehouse ledger schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

purchase_order_status = sa.Enum("DRAFT", "PENDING", "IN_TRANSIT", "DELIVERED", name="purchaseorderstatus")
sales_order_status = sa.Enum("PENDING", "FULFILLED", "CANCELLED", name="salesorderstatus")
return_status = sa.Enum("PENDING", "PROCESSING", "ACCEPTED", "REJECTED", name="returnstatus")


def upgrade() -> None:
    op.create_table(
        "inventory_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sku", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("incoming", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reserved", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_inventory_items_id"), "inventory_items", ["id"], unique=False)
    op.create_index(op.f("ix_inventory_items_sku"), "inventory_items", ["sku"], unique=True)

    op.create_table(
        "cost_layers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sku", sa.String(length=64), nullable=False),
        sa.Column("origin_kind", sa.String(length=24), nullable=False),
        sa.Column("origin_id", sa.String(length=64), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("original_quantity", sa.Integer(), nullable=False),
        sa.Column("unit_cost", sa.Numeric(14, 4), nullable=False),
        sa.Column("acquired_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("quantity >= 0", name="ck_cost_layers_quantity_non_negative"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_cost_layers_id"), "cost_layers", ["id"], unique=False)
    op.create_index("ix_cost_layers_sku_acquired", "cost_layers", ["sku", "acquired_at", "id"], unique=False)
    op.create_index("ix_cost_layers_sku_origin", "cost_layers", ["sku", "origin_id"], unique=False)

    op.create_table(
        "purchase_orders",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("reference", sa.String(length=32), nullable=False),
        sa.Column("supplier", sa.String(length=160), nullable=False),
        sa.Column("order_date", sa.Date(), nullable=False),
        sa.Column("status", purchase_order_status, nullable=False),
        sa.Column("delivery_cost", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_cost", sa.Numeric(14, 2), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_purchase_orders_id"), "purchase_orders", ["id"], unique=False)
    op.create_index(op.f("ix_purchase_orders_reference"), "purchase_orders", ["reference"], unique=True)
    op.create_index(op.f("ix_purchase_orders_order_date"), "purchase_orders", ["order_date"], unique=False)
    op.create_index(op.f("ix_purchase_orders_status"), "purchase_orders", ["status"], unique=False)

    op.create_table(
        "purchase_order_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("purchase_order_id", sa.Integer(), nullable=False),
        sa.Column("sku", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=160), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_cost", sa.Numeric(12, 2), nullable=False),
        sa.Column("delivery_cost_per_unit", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_cost", sa.Numeric(14, 2), nullable=False),
        sa.ForeignKeyConstraint(["purchase_order_id"], ["purchase_orders.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_purchase_order_items_id"), "purchase_order_items", ["id"], unique=False)
    op.create_index(
        op.f("ix_purchase_order_items_purchase_order_id"),
        "purchase_order_items",
        ["purchase_order_id"],
        unique=False,
    )
    op.create_index(op.f("ix_purchase_order_items_sku"), "purchase_order_items", ["sku"], unique=False)

    op.create_table(
        "sales_orders",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("store_name", sa.String(length=120), nullable=False),
        sa.Column("external_order_id", sa.String(length=64), nullable=False),
        sa.Column("order_number", sa.String(length=64), nullable=True),
        sa.Column("customer_name", sa.String(length=160), nullable=True),
        sa.Column("customer_email", sa.String(length=320), nullable=True),
        sa.Column("order_date", sa.DateTime(), nullable=False),
        sa.Column("status", sales_order_status, nullable=False),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("shipping_cost", sa.Numeric(12, 2), nullable=True),
        sa.Column("tax_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("fulfilled_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("store_name", "external_order_id", name="uq_sales_orders_store_external"),
    )
    op.create_index(op.f("ix_sales_orders_id"), "sales_orders", ["id"], unique=False)
    op.create_index(op.f("ix_sales_orders_order_date"), "sales_orders", ["order_date"], unique=False)
    op.create_index(op.f("ix_sales_orders_status"), "sales_orders", ["status"], unique=False)

    op.create_table(
        "sales_order_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sales_order_id", sa.Integer(), nullable=False),
        sa.Column("sku", sa.String(length=64), nullable=False),
        sa.Column("product_name", sa.String(length=160), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("cost_attributed", sa.Numeric(14, 4), nullable=True),
        sa.Column("layer_cost", sa.Numeric(14, 4), nullable=True),
        sa.Column("shortfall_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(["sales_order_id"], ["sales_orders.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_sales_order_items_id"), "sales_order_items", ["id"], unique=False)
    op.create_index(op.f("ix_sales_order_items_sales_order_id"), "sales_order_items", ["sales_order_id"], unique=False)
    op.create_index(op.f("ix_sales_order_items_sku"), "sales_order_items", ["sku"], unique=False)

    op.create_table(
        "returns",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("return_number", sa.String(length=32), nullable=False),
        sa.Column("customer_name", sa.String(length=160), nullable=False),
        sa.Column("customer_email", sa.String(length=320), nullable=True),
        sa.Column("order_number", sa.String(length=64), nullable=True),
        sa.Column("return_date", sa.Date(), nullable=False),
        sa.Column("status", return_status, nullable=False),
        sa.Column("total_refund", sa.Numeric(14, 2), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_returns_id"), "returns", ["id"], unique=False)
    op.create_index(op.f("ix_returns_return_number"), "returns", ["return_number"], unique=True)
    op.create_index(op.f("ix_returns_return_date"), "returns", ["return_date"], unique=False)
    op.create_index(op.f("ix_returns_status"), "returns", ["status"], unique=False)

    op.create_table(
        "return_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("return_id", sa.Integer(), nullable=False),
        sa.Column("sku", sa.String(length=64), nullable=False),
        sa.Column("product_name", sa.String(length=160), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(length=64), nullable=False),
        sa.Column("condition", sa.String(length=32), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_refund", sa.Numeric(14, 2), nullable=False),
        sa.Column("restock_unit_cost", sa.Numeric(14, 4), nullable=True),
        sa.ForeignKeyConstraint(["return_id"], ["returns.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_return_items_id"), "return_items", ["id"], unique=False)
    op.create_index(op.f("ix_return_items_return_id"), "return_items", ["return_id"], unique=False)
    op.create_index(op.f("ix_return_items_sku"), "return_items", ["sku"], unique=False)


def downgrade() -> None:
    op.drop_table("return_items")
    op.drop_table("returns")
    op.drop_table("sales_order_items")
    op.drop_table("sales_orders")
    op.drop_table("purchase_order_items")
    op.drop_table("purchase_orders")
    op.drop_table("cost_layers")
    op.drop_table("inventory_items")
    bind = op.get_bind()
    return_status.drop(bind, checkfirst=True)
    sales_order_status.drop(bind, checkfirst=True)
    purchase_order_status.drop(bind, checkfirst=True)
