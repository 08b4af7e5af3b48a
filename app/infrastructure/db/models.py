"""
SQLAlchemy ORM models
"""
from datetime import datetime

from sqlalchemy import String, Text, Float, TIMESTAMP, Index, func
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.db.session import Base


class SubscriptionModel(Base):
    """Tracked recurring subscription"""
    __tablename__ = "subscriptions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    cost: Mapped[float] = mapped_column(Float, nullable=False)
    billing_cycle: Mapped[str] = mapped_column(String(16), nullable=False)  # monthly / quarterly / yearly
    next_payment_date: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="active", server_default="active",
    )  # trial / active / paused / cancelled / expired

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_subscriptions_status", "status"),
    )
