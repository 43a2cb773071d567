"""Magic-link visits whose rating has been submitted."""

from sqlalchemy import ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from db.base import BaseModel


class RoutingVisit(BaseModel):
    """The rating a visit committed to. ``visit_id`` is unique: one rating per visit."""

    __tablename__ = "routing_visits"

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
    rating: Mapped[int] = mapped_column(nullable=False)
