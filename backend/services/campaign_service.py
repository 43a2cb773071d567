"""Campaign store: campaigns, magic-link tokens and routing policy lookup."""

import logging
import secrets
from typing import Any, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.constants import (
    CampaignStatus,
    CampaignType,
    DEFAULT_REPUTATION_THRESHOLD,
    MAX_RATING,
    MIN_RATING,
)
from core.exceptions import GoneError, NotFoundError, ValidationError
from db.models.campaign import Campaign
from services.base import BaseService
from services.review_router import CampaignPolicy

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "name",
    "status",
    "target_platforms",
    "message_template",
    "reputation_protection",
    "reputation_threshold",
)


def _validate(changes: dict[str, Any]) -> None:
    status = changes.get("status")
    if status is not None and status not in {s.value for s in CampaignStatus}:
        raise ValidationError(f"Unknown campaign status: {status}")

    campaign_type = changes.get("type")
    if campaign_type is not None and campaign_type not in {t.value for t in CampaignType}:
        raise ValidationError(f"Unknown campaign type: {campaign_type}")

    threshold = changes.get("reputation_threshold")
    if threshold is not None and not MIN_RATING <= threshold <= MAX_RATING:
        raise ValidationError(
            f"reputation_threshold must be between {MIN_RATING} and {MAX_RATING}"
        )

    platforms = changes.get("target_platforms")
    if platforms is not None and not all(isinstance(p, str) and p for p in platforms):
        raise ValidationError("target_platforms must be a list of platform ids")


def policy_for(campaign: Campaign) -> CampaignPolicy:
    """Routing policy of a campaign."""
    return CampaignPolicy(
        target_platforms=tuple(campaign.target_platforms or ()),
        reputation_protection_enabled=bool(campaign.reputation_protection),
        reputation_threshold=campaign.reputation_threshold or DEFAULT_REPUTATION_THRESHOLD,
        message_template=campaign.message_template,
    )


class CampaignService(BaseService[Campaign]):
    """Campaign CRUD plus magic-link resolution."""

    def __init__(self, db: AsyncSession, app_url: str = "", token_bytes: int = 16):
        super().__init__(Campaign, db)
        self.app_url = app_url.rstrip("/")
        self.token_bytes = token_bytes

    def _new_token(self) -> str:
        return secrets.token_urlsafe(self.token_bytes)

    async def create_campaign(
        self,
        tenant_id: str,
        name: str,
        type: str = CampaignType.EMAIL.value,
        target_platforms: Optional[list[str]] = None,
        message_template: Optional[str] = None,
        reputation_protection: bool = False,
        reputation_threshold: int = DEFAULT_REPUTATION_THRESHOLD,
        created_by: Optional[str] = None,
    ) -> Campaign:
        """Create a draft campaign with a fresh magic-link token."""
        if not name or not name.strip():
            raise ValidationError("Campaign name is required")
        _validate({
            "type": type,
            "target_platforms": target_platforms,
            "reputation_threshold": reputation_threshold,
        })

        token = self._new_token()
        campaign = await self.create({
            "tenant_id": tenant_id,
            "name": name.strip(),
            "type": type,
            "status": CampaignStatus.DRAFT.value,
            "target_platforms": list(target_platforms or []),
            "message_template": message_template,
            "magic_link_token": token,
            "magic_link_url": f"{self.app_url}/r/{token}",
            "reputation_protection": reputation_protection,
            "reputation_threshold": reputation_threshold,
            "created_by": created_by,
        })
        logger.info("Campaign created", extra={"tenant_id": tenant_id, "campaign_id": campaign.id})
        return campaign

    async def list_campaigns(
        self, tenant_id: str, status: Optional[str] = None
    ) -> Sequence[Campaign]:
        items, _ = await self.list(tenant_id=tenant_id, limit=500, filters={"status": status})
        return items

    async def get_campaign(self, campaign_id: str, tenant_id: str) -> Campaign:
        campaign = await self.get_by_id_and_tenant(campaign_id, tenant_id)
        if not campaign:
            raise NotFoundError("Campaign not found")
        return campaign

    async def update_campaign(
        self, campaign_id: str, tenant_id: str, changes: dict[str, Any]
    ) -> Campaign:
        changes = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS and v is not None}
        _validate(changes)
        campaign = await self.update(campaign_id, changes, tenant_id=tenant_id)
        if not campaign:
            raise NotFoundError("Campaign not found")
        return campaign

    async def find_by_token(self, token: str) -> Optional[Campaign]:
        result = await self.db.execute(
            select(Campaign).where(Campaign.magic_link_token == token)
        )
        return result.scalar_one_or_none()

    async def resolve(self, token: str, count_open: bool = True) -> tuple[Campaign, CampaignPolicy]:
        """Resolve a magic-link token to its campaign and routing policy.

        Raises:
            NotFoundError: If no campaign has this token
            GoneError: If the campaign is not active
        """
        campaign = await self.find_by_token(token)
        if campaign is None:
            raise NotFoundError("Magic link not found or expired")
        if campaign.status != CampaignStatus.ACTIVE.value:
            raise GoneError("This campaign is no longer active")

        if count_open:
            await self.db.execute(
                update(Campaign)
                .where(Campaign.id == campaign.id)
                .values(total_opened=Campaign.total_opened + 1)
            )
        return campaign, policy_for(campaign)
