"""Database models for schools, students, restaurants, orders and credits.

These models are kept isolated from any application wiring so that they can be
used in tests or migrations independently.
"""

from __future__ import annotations

import enum
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import declarative_base, relationship

from .domain.order_status import OrderStatus

Base = declarative_base()


def _uuid() -> str:
    return uuid.uuid4().hex


class CreditTransactionType(str, enum.Enum):
    """Kinds of balance-changing ledger entries."""

    PURCHASE = "PURCHASE"
    SPEND = "SPEND"
    REFUND = "REFUND"
    LOYALTY_REWARD = "LOYALTY_REWARD"
    ADMIN_ADD = "ADMIN_ADD"


class PromotionType(str, enum.Enum):
    FIRST_TIME = "FIRST_TIME"
    LOYALTY_REWARD = "LOYALTY_REWARD"


class School(Base):
    """Campus a student or restaurant belongs to."""

    __tablename__ = "schools"

    id = Column(String(32), primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    domain = Column(String, unique=True, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Student(Base):
    """Student account holding a prepaid credit balance.

    ``credit_balance`` is denormalized from ``credit_transactions`` and is only
    changed in the same transaction that appends a ledger entry.
    """

    __tablename__ = "students"
    __table_args__ = (
        CheckConstraint("credit_balance >= 0", name="ck_students_balance_nonneg"),
    )

    id = Column(String(32), primary_key=True, default=_uuid)
    school_id = Column(String(32), ForeignKey("schools.id"), nullable=True)
    email = Column(String, unique=True, nullable=False)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    credit_balance = Column(Numeric(10, 2), nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class Restaurant(Base):
    """Restaurant taking orders at a school."""

    __tablename__ = "restaurants"

    id = Column(String(32), primary_key=True, default=_uuid)
    school_id = Column(String(32), ForeignKey("schools.id"), nullable=True)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    # Call dispatch is handled by an external telephony service.
    call_enabled = Column(Boolean, nullable=False, default=False)
    call_phone = Column(String, nullable=True)
    call_retries = Column(Integer, nullable=False, default=2)
    call_timeout_secs = Column(Integer, nullable=False, default=30)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    promotion_config = relationship(
        "PromotionConfig", uselist=False, lazy="selectin", back_populates="restaurant"
    )


class PromotionConfig(Base):
    """Per-restaurant first-time and loyalty promotion settings."""

    __tablename__ = "promotion_configs"

    id = Column(Integer, primary_key=True)
    restaurant_id = Column(
        String(32), ForeignKey("restaurants.id"), unique=True, nullable=False
    )
    first_time_enabled = Column(Boolean, nullable=False, default=False)
    first_time_percent = Column(Numeric(5, 2), nullable=False, default=0)
    loyalty_enabled = Column(Boolean, nullable=False, default=False)
    loyalty_spend_threshold = Column(Numeric(10, 2), nullable=False, default=50)
    loyalty_reward_amount = Column(Numeric(10, 2), nullable=False, default=5)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    restaurant = relationship("Restaurant", back_populates="promotion_config")


class MenuItem(Base):
    """Menu entry with modifier groups stored as JSON.

    ``modifiers`` is a list of groups shaped like::

        {"id": "size", "name": "Size", "required": true,
         "min_selections": 1, "max_selections": 1,
         "modifiers": [{"id": "lg", "name": "Large", "price": "1.50",
                        "available": true}]}
    """

    __tablename__ = "menu_items"

    id = Column(String(32), primary_key=True, default=_uuid)
    restaurant_id = Column(String(32), ForeignKey("restaurants.id"), nullable=False)
    name = Column(String, nullable=False)
    category = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    available = Column(Boolean, nullable=False, default=True)
    modifiers = Column(JSON, nullable=False, default=list)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class Order(Base):
    """Order placed by a student at a restaurant."""

    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("final_amount >= 0", name="ck_orders_final_nonneg"),
        Index(
            "ix_orders_student_restaurant_status",
            "student_id",
            "restaurant_id",
            "status",
        ),
        Index("ix_orders_restaurant_status", "restaurant_id", "status"),
    )

    id = Column(String(32), primary_key=True, default=_uuid)
    student_id = Column(String(32), ForeignKey("students.id"), nullable=False)
    restaurant_id = Column(String(32), ForeignKey("restaurants.id"), nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0)
    final_amount = Column(Numeric(10, 2), nullable=False)
    loyalty_reward_amount = Column(Numeric(10, 2), nullable=False, default=0)
    status = Column(
        Enum(OrderStatus, name="order_status", native_enum=False),
        nullable=False,
        default=OrderStatus.PENDING,
    )
    promotion_applied = Column(
        Enum(PromotionType, name="promotion_type", native_enum=False), nullable=True
    )
    special_instructions = Column(Text, nullable=True)
    refund_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    ready_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    items = relationship(
        "OrderItem", lazy="selectin", order_by="OrderItem.id", back_populates="order"
    )


class OrderItem(Base):
    """Line item snapshotting the menu price at order time."""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(String(32), ForeignKey("orders.id"), nullable=False)
    menu_item_id = Column(String(32), ForeignKey("menu_items.id"), nullable=False)
    name_snapshot = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    modifiers_selected = Column(JSON, nullable=False, default=list)
    total_price = Column(Numeric(10, 2), nullable=False)
    special_instructions = Column(Text, nullable=True)

    order = relationship("Order", back_populates="items")


class CreditTransaction(Base):
    """Append-only ledger entry. Positive amounts credit, negative debit."""

    __tablename__ = "credit_transactions"
    __table_args__ = (
        Index("ix_credit_transactions_student_created", "student_id", "created_at"),
    )

    id = Column(Integer, primary_key=True)
    student_id = Column(String(32), ForeignKey("students.id"), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    type = Column(
        Enum(CreditTransactionType, name="credit_transaction_type", native_enum=False),
        nullable=False,
    )
    description = Column(String, nullable=True)
    order_id = Column(String(32), ForeignKey("orders.id"), nullable=True)
    payment_ref = Column(String, unique=True, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class PromotionCost(Base):
    """Cost of a discount granted on an order, borne by the restaurant."""

    __tablename__ = "promotion_costs"
    __table_args__ = (UniqueConstraint("order_id", name="uq_promotion_costs_order"),)

    id = Column(Integer, primary_key=True)
    order_id = Column(String(32), ForeignKey("orders.id"), nullable=False)
    restaurant_id = Column(String(32), ForeignKey("restaurants.id"), nullable=False)
    promotion_type = Column(
        Enum(PromotionType, name="promotion_type", native_enum=False), nullable=False
    )
    original_total = Column(Numeric(10, 2), nullable=False)
    discount_amount = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
