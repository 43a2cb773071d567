"""Outcome sink: locks visit ratings and persists terminal routing events once per visit."""

import logging
from typing import Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.constants import OutcomeType
from core.exceptions import ValidationError
from db.models.campaign import Campaign
from db.models.routing_outcome import RoutingOutcomeRecord
from db.models.routing_visit import RoutingVisit
from services.review_router import RoutingOutcome

logger = logging.getLogger(__name__)


class OutcomeSink:
    """Records routing outcomes and keeps campaign funnel counters."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_visit(self, visit_id: str) -> Optional[RoutingOutcomeRecord]:
        result = await self.db.execute(
            select(RoutingOutcomeRecord).where(RoutingOutcomeRecord.visit_id == visit_id)
        )
        return result.scalar_one_or_none()

    async def lock_rating(self, campaign: Campaign, visit_id: str, rating: int) -> RoutingVisit:
        """Commit a visit to its first rating.

        Raises:
            ValidationError: If the visit has already been rated
        """
        existing = await self.db.execute(
            select(RoutingVisit.id).where(RoutingVisit.visit_id == visit_id)
        )
        if existing.first() is not None:
            raise ValidationError("This visit has already been rated")

        visit = RoutingVisit(
            campaign_id=campaign.id,
            tenant_id=campaign.tenant_id,
            visit_id=visit_id,
            rating=rating,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(visit)
                await self.db.flush()
        except IntegrityError:
            # Lost a race with a concurrent rate for the same visit
            raise ValidationError("This visit has already been rated")
        return visit

    async def record(
        self, campaign: Campaign, visit_id: str, outcome: RoutingOutcome
    ) -> RoutingOutcomeRecord:
        """Persist an outcome. A retry for the same visit returns the first record."""
        existing = await self.find_by_visit(visit_id)
        if existing is not None:
            logger.info("Duplicate routing outcome ignored", extra={"visit_id": visit_id})
            return existing

        record = RoutingOutcomeRecord(
            campaign_id=campaign.id,
            tenant_id=campaign.tenant_id,
            visit_id=visit_id,
            type=outcome.type.value,
            rating=outcome.rating,
            platform=outcome.platform,
            feedback_text=outcome.text,
        )
        self.db.add(record)

        if outcome.type == OutcomeType.PLATFORM_REFERRAL:
            await self.db.execute(
                update(Campaign)
                .where(Campaign.id == campaign.id)
                .values(total_clicked=Campaign.total_clicked + 1)
            )

        await self.db.flush()
        logger.info(
            "Routing outcome recorded",
            extra={"campaign_id": campaign.id, "type": outcome.type.value, "rating": outcome.rating},
        )
        return record

    async def list_for_campaign(self, campaign_id: str, limit: int = 100) -> Sequence[RoutingOutcomeRecord]:
        result = await self.db.execute(
            select(RoutingOutcomeRecord)
            .where(RoutingOutcomeRecord.campaign_id == campaign_id)
            .order_by(RoutingOutcomeRecord.created_at.desc())
            .limit(limit)
        )
        return result.scalars().all()

    async def stats_for_tenant(self, tenant_id: str) -> dict:
        """Outcome counts by type and the average rating across all visits."""
        by_type = await self.db.execute(
            select(RoutingOutcomeRecord.type, func.count())
            .where(RoutingOutcomeRecord.tenant_id == tenant_id)
            .group_by(RoutingOutcomeRecord.type)
        )
        counts = {t.value: 0 for t in OutcomeType}
        for outcome_type, count in by_type.all():
            counts[outcome_type] = count

        avg_rating = await self.db.scalar(
            select(func.avg(RoutingOutcomeRecord.rating))
            .where(RoutingOutcomeRecord.tenant_id == tenant_id)
        )
        return {
            "total": sum(counts.values()),
            "by_type": counts,
            "average_rating": round(float(avg_rating), 2) if avg_rating is not None else None,
        }
