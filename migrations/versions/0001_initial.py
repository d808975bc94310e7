"""initial schema: orders, inventory, daily ledgers

Revision ID: 0001
Revises:
Create Date: 2024-06-01 00:00:00
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


ORDER_STATUSES = (
    "PENDING", "FULFILLING", "COMPLETED", "PARTIAL", "DELAYED", "CHANGES_MADE",
)
PAYMENT_METHODS = ("CASH", "UPI", "CREDIT", "MIXED")


def upgrade() -> None:
    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_number", sa.String(50), nullable=False),
        sa.Column(
            "status",
            sa.Enum(*ORDER_STATUSES, name="order_status_enum",
                    create_constraint=True),
            nullable=False,
        ),
        sa.Column(
            "payment_method",
            sa.Enum(*PAYMENT_METHODS, name="payment_method_enum",
                    create_constraint=True),
            nullable=True,
        ),
        sa.Column("customer_name", sa.String(100), nullable=True),
        sa.Column("verified_by", sa.String(50), nullable=True),
        sa.Column("location_id", sa.String(50), nullable=True),
        sa.Column("discount", sa.Numeric(19, 4), nullable=False),
        sa.Column("final_amount", sa.Numeric(19, 4), nullable=True),
        sa.Column("is_delivery_order", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
    )
    op.create_index(
        "ix_orders_order_number", "orders", ["order_number"], unique=True
    )
    op.create_index("ix_orders_created_at", "orders", ["created_at"])

    op.create_table(
        "order_lines",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "order_id", sa.Integer(), sa.ForeignKey("orders.id"),
            nullable=False,
        ),
        sa.Column("item_id", sa.String(50), nullable=False),
        sa.Column("quantity", sa.Numeric(19, 4), nullable=False),
        sa.Column("unit_price", sa.Numeric(19, 4), nullable=False),
        sa.Column("checked", sa.Boolean(), nullable=False),
        sa.Column("location_id", sa.String(50), nullable=True),
    )
    op.create_index("ix_order_lines_order_id", "order_lines", ["order_id"])

    op.create_table(
        "inventory_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("item_id", sa.String(50), nullable=False),
        sa.Column("location_id", sa.String(50), nullable=False),
        sa.Column("quantity_on_hand", sa.Numeric(19, 4), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint(
            "item_id", "location_id", name="uq_inventory_item_location"
        ),
        sa.CheckConstraint(
            "quantity_on_hand >= 0", name="ck_inventory_non_negative"
        ),
    )

    op.create_table(
        "daily_ledgers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("business_date", sa.Date(), nullable=False),
        sa.Column("grand_total", sa.Numeric(19, 4), nullable=False),
        sa.Column("total_cash", sa.Numeric(19, 4), nullable=False),
        sa.Column("total_upi", sa.Numeric(19, 4), nullable=False),
        sa.Column("total_credit", sa.Numeric(19, 4), nullable=False),
        sa.Column("total_mixed", sa.Numeric(19, 4), nullable=False),
        sa.Column("staging_digest", sa.String(64), nullable=False),
        sa.Column("is_committed", sa.Boolean(), nullable=False),
        sa.Column("is_corrected", sa.Boolean(), nullable=False),
        sa.Column("committed_by", sa.String(50), nullable=True),
        sa.Column("committed_at", sa.DateTime(), nullable=True),
    )
    op.create_index(
        "ix_daily_ledgers_business_date", "daily_ledgers", ["business_date"],
        unique=True,
    )

    op.create_table(
        "ledger_order_snapshots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "ledger_id", sa.Integer(), sa.ForeignKey("daily_ledgers.id"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("order_id", sa.String(50), nullable=False),
        sa.Column("customer_name", sa.String(100), nullable=True),
        sa.Column("final_amount", sa.Numeric(19, 4), nullable=False),
        sa.Column(
            "payment_method",
            sa.Enum(*PAYMENT_METHODS, name="snapshot_payment_method_enum",
                    create_constraint=True),
            nullable=False,
        ),
        sa.Column("verified_by", sa.String(50), nullable=True),
    )
    op.create_index(
        "ix_ledger_order_snapshots_ledger_id",
        "ledger_order_snapshots", ["ledger_id"],
    )

    op.create_table(
        "ledger_deductions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "ledger_id", sa.Integer(), sa.ForeignKey("daily_ledgers.id"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("item_id", sa.String(50), nullable=False),
        sa.Column("location_id", sa.String(50), nullable=False),
        sa.Column("quantity", sa.Numeric(19, 4), nullable=False),
        sa.Column("contributing_order_ids", sa.JSON(), nullable=False),
    )
    op.create_index(
        "ix_ledger_deductions_ledger_id", "ledger_deductions", ["ledger_id"]
    )

    op.create_table(
        "ledger_corrections",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "ledger_id", sa.Integer(), sa.ForeignKey("daily_ledgers.id"),
            nullable=False,
        ),
        sa.Column("field", sa.String(50), nullable=False),
        sa.Column("order_id", sa.String(50), nullable=True),
        sa.Column("original_value", sa.String(255), nullable=True),
        sa.Column("corrected_value", sa.String(255), nullable=False),
        sa.Column("delta", sa.Numeric(19, 4), nullable=True),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("corrected_by", sa.String(50), nullable=False),
        sa.Column("corrected_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "ix_ledger_corrections_ledger_id", "ledger_corrections", ["ledger_id"]
    )


def downgrade() -> None:
    op.drop_table("ledger_corrections")
    op.drop_table("ledger_deductions")
    op.drop_table("ledger_order_snapshots")
    op.drop_table("daily_ledgers")
    op.drop_table("inventory_records")
    op.drop_table("order_lines")
    op.drop_table("orders")
