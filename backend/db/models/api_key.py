"""API key model: one row per issued tenant API key.

Only the SHA-256 hash is used for verification. The raw key is also kept
AES-256-GCM encrypted for rotation tooling; it is never returned to users
after creation.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import BaseModel


class APIKey(BaseModel):
    """Persisted API key for programmatic access.

    Attributes:
        id: UUID primary key
        tenant_id: Owning tenant (immutable)
        name: Human-readable label
        key_hash: SHA-256 hex digest of the raw key
        key_prefix: Leading characters of the raw key for display (e.g. "tlv_AbCdE...")
        encrypted_key: Raw key encrypted under the master key
        is_active: False once revoked
        expires_at: Optional expiry; None means the key never expires
        last_used_at: Timestamp of last successful verification
        usage_count: Number of successful verifications
        created_by: Id of the user who issued the key
    """

    __tablename__ = "api_keys"

    tenant_id: Mapped[str] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(nullable=False)
    key_hash: Mapped[str] = mapped_column(nullable=False, unique=True, index=True)
    key_prefix: Mapped[str] = mapped_column(nullable=False)
    encrypted_key: Mapped[str] = mapped_column(nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, index=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_used_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    usage_count: Mapped[int] = mapped_column(default=0)
    created_by: Mapped[Optional[str]] = mapped_column(nullable=True)

    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="api_keys")
