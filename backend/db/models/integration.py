"""Integration credential model (Slack, HubSpot, ...)."""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from core.constants import IntegrationType
from db.base import BaseModel, SoftDeleteMixin


class Integration(SoftDeleteMixin, BaseModel):
    """Third-party integration with an encrypted credentials payload.

    Attributes:
        tenant_id: Owning tenant
        type: Integration type (slack, gmail, hubspot, ...)
        name: Display name
        config: Non-secret settings (webhook URL, channel id, ...)
        encrypted_credentials: JSON credentials payload encrypted under the master key
        is_active: Whether the integration is enabled
        last_used_at: Last time the credentials were decrypted for use
    """

    __tablename__ = "integrations"

    tenant_id: Mapped[str] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[str] = mapped_column(default=IntegrationType.SLACK.value, index=True)
    name: Mapped[str] = mapped_column(nullable=False)
    config: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    encrypted_credentials: Mapped[Optional[str]] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True)
    last_used_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(nullable=True)
