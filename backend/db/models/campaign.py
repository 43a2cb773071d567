"""Campaign model: review solicitation campaign with a magic link."""

from typing import Optional

from sqlalchemy import JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import CampaignStatus, CampaignType, DEFAULT_REPUTATION_THRESHOLD
from db.base import BaseModel


class Campaign(BaseModel):
    """Review campaign and its routing policy.

    Attributes:
        tenant_id: Owning tenant
        name: Campaign name
        type: Distribution channel
        status: draft | active | paused | completed
        target_platforms: Ordered list of platform ids offered to customers
        message_template: Optional prompt shown on the rating step
        magic_link_token: Opaque token embedded in the magic link
        magic_link_url: Full URL distributed to customers
        reputation_protection: Route low ratings to private feedback
        reputation_threshold: Ratings strictly below this are routed to feedback
        total_sent / total_opened / total_clicked / total_reviewed: funnel counters
    """

    __tablename__ = "campaigns"

    tenant_id: Mapped[str] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(nullable=False)
    type: Mapped[str] = mapped_column(default=CampaignType.EMAIL.value)
    status: Mapped[str] = mapped_column(default=CampaignStatus.DRAFT.value, index=True)
    target_platforms: Mapped[Optional[list]] = mapped_column(JSON, nullable=True, default=list)
    message_template: Mapped[Optional[str]] = mapped_column(nullable=True)
    magic_link_token: Mapped[str] = mapped_column(nullable=False, unique=True, index=True)
    magic_link_url: Mapped[str] = mapped_column(nullable=False)
    reputation_protection: Mapped[bool] = mapped_column(default=False)
    reputation_threshold: Mapped[int] = mapped_column(default=DEFAULT_REPUTATION_THRESHOLD)
    total_sent: Mapped[int] = mapped_column(default=0)
    total_opened: Mapped[int] = mapped_column(default=0)
    total_clicked: Mapped[int] = mapped_column(default=0)
    total_reviewed: Mapped[int] = mapped_column(default=0)
    created_by: Mapped[Optional[str]] = mapped_column(nullable=True)

    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="campaigns", lazy="selectin")
