"""Campaign management endpoints.

Business users create campaigns, tune reputation protection and read the
routing outcomes collected through each campaign's magic link.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from core.constants import CampaignStatus, CampaignType, DEFAULT_REPUTATION_THRESHOLD, MAX_RATING, MIN_RATING
from core.security import TokenPayload, get_current_user
from app.dependencies import get_campaign_service, get_outcome_sink
from db.models.campaign import Campaign
from services.campaign_service import CampaignService
from services.outcome_service import OutcomeSink

router = APIRouter()


class CampaignCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: CampaignType = CampaignType.EMAIL
    target_platforms: list[str] = Field(default_factory=list)
    message_template: Optional[str] = None
    reputation_protection: bool = False
    reputation_threshold: int = Field(default=DEFAULT_REPUTATION_THRESHOLD, ge=MIN_RATING, le=MAX_RATING)


class CampaignUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    status: Optional[CampaignStatus] = None
    target_platforms: Optional[list[str]] = None
    message_template: Optional[str] = None
    reputation_protection: Optional[bool] = None
    reputation_threshold: Optional[int] = Field(default=None, ge=MIN_RATING, le=MAX_RATING)


class CampaignResponse(BaseModel):
    id: str
    name: str
    type: str
    status: str
    target_platforms: list[str]
    message_template: Optional[str] = None
    magic_link_url: str
    reputation_protection: bool
    reputation_threshold: int
    total_sent: int
    total_opened: int
    total_clicked: int
    total_reviewed: int
    created_at: Optional[datetime] = None


class OutcomeResponse(BaseModel):
    id: str
    visit_id: str
    type: str
    rating: int
    platform: Optional[str] = None
    feedback_text: Optional[str] = None
    created_at: Optional[datetime] = None


def _to_response(campaign: Campaign) -> dict:
    return {
        "id": campaign.id,
        "name": campaign.name,
        "type": campaign.type,
        "status": campaign.status,
        "target_platforms": list(campaign.target_platforms or []),
        "message_template": campaign.message_template,
        "magic_link_url": campaign.magic_link_url,
        "reputation_protection": campaign.reputation_protection,
        "reputation_threshold": campaign.reputation_threshold,
        "total_sent": campaign.total_sent or 0,
        "total_opened": campaign.total_opened or 0,
        "total_clicked": campaign.total_clicked or 0,
        "total_reviewed": campaign.total_reviewed or 0,
        "created_at": campaign.created_at,
    }


@router.get("/", response_model=list[CampaignResponse])
async def list_campaigns(
    status_filter: Optional[CampaignStatus] = Query(default=None, alias="status"),
    current_user: TokenPayload = Depends(get_current_user),
    service: CampaignService = Depends(get_campaign_service),
):
    """List the tenant's campaigns, newest first."""
    campaigns = await service.list_campaigns(
        current_user.tenant_id,
        status=status_filter.value if status_filter else None,
    )
    return [_to_response(c) for c in campaigns]


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=CampaignResponse)
async def create_campaign(
    body: CampaignCreateRequest,
    current_user: TokenPayload = Depends(get_current_user),
    service: CampaignService = Depends(get_campaign_service),
):
    """Create a draft campaign. Activate it with PATCH to make the magic link live."""
    campaign = await service.create_campaign(
        tenant_id=current_user.tenant_id,
        name=body.name,
        type=body.type.value,
        target_platforms=body.target_platforms,
        message_template=body.message_template,
        reputation_protection=body.reputation_protection,
        reputation_threshold=body.reputation_threshold,
        created_by=current_user.sub,
    )
    return _to_response(campaign)


@router.get("/{campaign_id}", response_model=CampaignResponse)
async def get_campaign(
    campaign_id: str,
    current_user: TokenPayload = Depends(get_current_user),
    service: CampaignService = Depends(get_campaign_service),
):
    campaign = await service.get_campaign(campaign_id, current_user.tenant_id)
    return _to_response(campaign)


@router.patch("/{campaign_id}", response_model=CampaignResponse)
async def update_campaign(
    campaign_id: str,
    body: CampaignUpdateRequest,
    current_user: TokenPayload = Depends(get_current_user),
    service: CampaignService = Depends(get_campaign_service),
):
    """Update name, status, platforms or reputation protection settings."""
    changes = body.model_dump(exclude_unset=True)
    if body.status is not None:
        changes["status"] = body.status.value
    campaign = await service.update_campaign(campaign_id, current_user.tenant_id, changes)
    return _to_response(campaign)


@router.get("/{campaign_id}/outcomes", response_model=list[OutcomeResponse])
async def list_campaign_outcomes(
    campaign_id: str,
    limit: int = Query(default=100, ge=1, le=500),
    current_user: TokenPayload = Depends(get_current_user),
    service: CampaignService = Depends(get_campaign_service),
    sink: OutcomeSink = Depends(get_outcome_sink),
):
    """Private feedback and referrals recorded for a campaign."""
    campaign = await service.get_campaign(campaign_id, current_user.tenant_id)
    records = await sink.list_for_campaign(campaign.id, limit=limit)
    return [
        {
            "id": r.id,
            "visit_id": r.visit_id,
            "type": r.type,
            "rating": r.rating,
            "platform": r.platform,
            "feedback_text": r.feedback_text,
            "created_at": r.created_at,
        }
        for r in records
    ]
