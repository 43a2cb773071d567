"""Terminal outcomes of magic-link routing sessions."""

from typing import Optional

from sqlalchemy import ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import BaseModel


class RoutingOutcomeRecord(BaseModel):
    """One terminal event per visit (feedback, platform referral or decline).

    ``visit_id`` is unique so that client retries do not record twice.
    """

    __tablename__ = "routing_outcomes"

    campaign_id: Mapped[str] = mapped_column(
        ForeignKey("campaigns.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tenant_id: Mapped[str] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    visit_id: Mapped[str] = mapped_column(nullable=False, unique=True, index=True)
    type: Mapped[str] = mapped_column(nullable=False, index=True)
    rating: Mapped[int] = mapped_column(nullable=False)
    platform: Mapped[Optional[str]] = mapped_column(nullable=True)
    feedback_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
