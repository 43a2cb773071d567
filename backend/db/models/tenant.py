"""Tenant model: a business that owns keys, integrations and campaigns."""

from typing import Optional

from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import BaseModel


class Tenant(BaseModel):
    """A customer business in the multi-tenant system.

    Attributes:
        id: Unique identifier (UUID string)
        name: Business name shown on magic-link pages
        slug: URL-friendly identifier
        logo_url: Optional logo shown on magic-link pages
        is_active: Whether the tenant is active
    """

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(nullable=False, index=True)
    slug: Mapped[str] = mapped_column(nullable=False, unique=True, index=True)
    logo_url: Mapped[Optional[str]] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True)

    api_keys: Mapped[list["APIKey"]] = relationship(
        "APIKey",
        back_populates="tenant",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    campaigns: Mapped[list["Campaign"]] = relationship(
        "Campaign",
        back_populates="tenant",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
