"""
SQLAlchemy models for accounts and usage events.

Tables:
- users: Per-identity account with tier, usage counters, subscription
  state and the optional custom automation endpoint
- usage_events: Append-only audit rows, one per successfully forwarded call
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import DateTime, Index, Integer, String, Text, Boolean, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class UserModel(Base):
    """Account row keyed by the auth provider's user id."""
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    clerk_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)

    subscription_tier: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, default="standard")
    subscription_status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, default="inactive")
    message_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    workflow_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    stripe_customer_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    stripe_subscription_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)

    use_custom_n8n: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    custom_n8n_endpoint: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    custom_n8n_api_key: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class UsageEventModel(Base):
    """Audit row for one forwarded chat or workflow call."""
    __tablename__ = "usage_events"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    action_type: Mapped[str] = mapped_column(String(16), nullable=False)
    target_id: Mapped[str] = mapped_column(String(255), nullable=False)
    payload: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_usage_events_user_created", "user_id", "created_at"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "user_id": self.user_id,
            "action_type": self.action_type,
            "target_id": self.target_id,
            "payload": self.payload,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


__all__ = [
    "Base",
    "UserModel",
    "UsageEventModel",
]
