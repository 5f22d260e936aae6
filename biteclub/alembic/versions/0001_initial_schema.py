"""initial schema

Revision ID: 0001_initial_schema
Revises: None
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision: str = "0001_initial_schema"
down_revision: str | None = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def _money(name: str, **kwargs) -> sa.Column:
    return sa.Column(name, sa.Numeric(10, 2), **kwargs)


def _created() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
    )


def _updated() -> sa.Column:
    return sa.Column(
        "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()
    )


def upgrade() -> None:
    op.create_table(
        "schools",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("domain", sa.String(), nullable=False, unique=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created(),
    )
    op.create_table(
        "students",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("school_id", sa.String(32), sa.ForeignKey("schools.id")),
        sa.Column("email", sa.String(), nullable=False, unique=True),
        sa.Column("first_name", sa.String()),
        sa.Column("last_name", sa.String()),
        _money("credit_balance", nullable=False, server_default="0"),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created(),
        _updated(),
        sa.CheckConstraint("credit_balance >= 0", name="ck_students_balance_nonneg"),
    )
    op.create_table(
        "restaurants",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("school_id", sa.String(32), sa.ForeignKey("schools.id")),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("phone", sa.String()),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "call_enabled", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("call_phone", sa.String()),
        sa.Column("call_retries", sa.Integer(), nullable=False, server_default="2"),
        sa.Column(
            "call_timeout_secs", sa.Integer(), nullable=False, server_default="30"
        ),
        _created(),
    )
    op.create_table(
        "promotion_configs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "restaurant_id",
            sa.String(32),
            sa.ForeignKey("restaurants.id"),
            nullable=False,
            unique=True,
        ),
        sa.Column(
            "first_time_enabled", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "first_time_percent", sa.Numeric(5, 2), nullable=False, server_default="0"
        ),
        sa.Column(
            "loyalty_enabled", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        _money("loyalty_spend_threshold", nullable=False, server_default="50"),
        _money("loyalty_reward_amount", nullable=False, server_default="5"),
        _updated(),
    )
    op.create_table(
        "menu_items",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column(
            "restaurant_id", sa.String(32), sa.ForeignKey("restaurants.id"), nullable=False
        ),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("category", sa.String()),
        sa.Column("description", sa.Text()),
        _money("price", nullable=False),
        sa.Column("available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("modifiers", sa.JSON(), nullable=False),
        _updated(),
    )
    op.create_table(
        "orders",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column(
            "student_id", sa.String(32), sa.ForeignKey("students.id"), nullable=False
        ),
        sa.Column(
            "restaurant_id", sa.String(32), sa.ForeignKey("restaurants.id"), nullable=False
        ),
        _money("total_amount", nullable=False),
        _money("discount_amount", nullable=False, server_default="0"),
        _money("final_amount", nullable=False),
        _money("loyalty_reward_amount", nullable=False, server_default="0"),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("promotion_applied", sa.String(16)),
        sa.Column("special_instructions", sa.Text()),
        sa.Column("refund_reason", sa.Text()),
        _created(),
        sa.Column("accepted_at", sa.DateTime(timezone=True)),
        sa.Column("ready_at", sa.DateTime(timezone=True)),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("cancelled_at", sa.DateTime(timezone=True)),
        _updated(),
        sa.CheckConstraint("final_amount >= 0", name="ck_orders_final_nonneg"),
    )
    op.create_index(
        "ix_orders_student_restaurant_status",
        "orders",
        ["student_id", "restaurant_id", "status"],
    )
    op.create_index("ix_orders_restaurant_status", "orders", ["restaurant_id", "status"])
    op.create_table(
        "order_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.String(32), sa.ForeignKey("orders.id"), nullable=False),
        sa.Column(
            "menu_item_id", sa.String(32), sa.ForeignKey("menu_items.id"), nullable=False
        ),
        sa.Column("name_snapshot", sa.String(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        _money("unit_price", nullable=False),
        sa.Column("modifiers_selected", sa.JSON(), nullable=False),
        _money("total_price", nullable=False),
        sa.Column("special_instructions", sa.Text()),
    )
    op.create_table(
        "credit_transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "student_id", sa.String(32), sa.ForeignKey("students.id"), nullable=False
        ),
        _money("amount", nullable=False),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("description", sa.String()),
        sa.Column("order_id", sa.String(32), sa.ForeignKey("orders.id")),
        sa.Column("payment_ref", sa.String(), unique=True),
        _created(),
    )
    op.create_index(
        "ix_credit_transactions_student_created",
        "credit_transactions",
        ["student_id", "created_at"],
    )
    op.create_table(
        "promotion_costs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.String(32), sa.ForeignKey("orders.id"), nullable=False),
        sa.Column(
            "restaurant_id", sa.String(32), sa.ForeignKey("restaurants.id"), nullable=False
        ),
        sa.Column("promotion_type", sa.String(16), nullable=False),
        _money("original_total", nullable=False),
        _money("discount_amount", nullable=False),
        _created(),
        sa.UniqueConstraint("order_id", name="uq_promotion_costs_order"),
    )


def downgrade() -> None:
    op.drop_table("promotion_costs")
    op.drop_index(
        "ix_credit_transactions_student_created", table_name="credit_transactions"
    )
    op.drop_table("credit_transactions")
    op.drop_table("order_items")
    op.drop_index("ix_orders_restaurant_status", table_name="orders")
    op.drop_index("ix_orders_student_restaurant_status", table_name="orders")
    op.drop_table("orders")
    op.drop_table("menu_items")
    op.drop_table("promotion_configs")
    op.drop_table("restaurants")
    op.drop_table("students")
    op.drop_table("schools")
