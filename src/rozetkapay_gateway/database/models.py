"""SQLAlchemy models for orders and the payments recorded against them."""

import uuid
import enum
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, Any, List

from sqlalchemy import (
    String,
    Integer,
    Numeric,
    DateTime,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship, Mapped, mapped_column

from ..reconciliation.models import Price


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class PaymentState(str, enum.Enum):
    """Local payment states written by the callback handlers."""
    COMPLETED = "completed"


class Order(Base):
    """The host's order: what the shopper owes and who they are."""
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    total_number: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency_code: Mapped[str] = mapped_column(String(3), nullable=False)
    # NULL for anonymous checkouts
    customer_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    state: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    payments: Mapped[List["Payment"]] = relationship(
        "Payment",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="Payment.created_at",
    )

    @property
    def total_price(self) -> Price:
        return Price(number=self.total_number, currency_code=self.currency_code)

    @property
    def is_anonymous(self) -> bool:
        return not self.customer_name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "total_number": str(self.total_number),
            "currency_code": self.currency_code,
            "customer_name": self.customer_name,
            "state": self.state,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Payment(Base):
    """A completed payment confirmed by the provider."""
    __tablename__ = "payments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    state: Mapped[str] = mapped_column(String(50), nullable=False, default=PaymentState.COMPLETED.value)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    payment_gateway: Mapped[str] = mapped_column(String(64), nullable=False)
    order_id: Mapped[int] = mapped_column(Integer, ForeignKey("orders.id"), nullable=False, index=True)

    # Provider payment id and the status string it reported
    remote_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    remote_state: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    order: Mapped["Order"] = relationship("Order", back_populates="payments")

    __table_args__ = (
        UniqueConstraint("order_id", "remote_id", name="uq_payments_order_remote"),
        Index("ix_payments_remote_id", "remote_id"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert payment to dictionary representation."""
        return {
            "id": self.id,
            "state": self.state,
            "amount": str(self.amount),
            "currency": self.currency,
            "payment_gateway": self.payment_gateway,
            "order_id": self.order_id,
            "remote_id": self.remote_id,
            "remote_state": self.remote_state,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
