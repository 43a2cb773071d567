"""Public reporting API, authenticated by tenant API key.

Usage::

    curl -H "Authorization: Bearer tlv_..." https://host/api/public/v1/campaigns
"""

from fastapi import APIRouter, Depends

from core.api_keys import resolve_api_key
from app.dependencies import get_campaign_service, get_outcome_sink
from services.campaign_service import CampaignService
from services.credential_vault import VerifiedKey
from services.outcome_service import OutcomeSink

router = APIRouter()


@router.get("/campaigns")
async def list_campaigns(
    key: VerifiedKey = Depends(resolve_api_key),
    service: CampaignService = Depends(get_campaign_service),
):
    """Campaigns of the key's tenant with their funnel counters."""
    campaigns = await service.list_campaigns(key.tenant_id)
    return {
        "data": [
            {
                "id": c.id,
                "name": c.name,
                "status": c.status,
                "magic_link_url": c.magic_link_url,
                "total_sent": c.total_sent or 0,
                "total_opened": c.total_opened or 0,
                "total_clicked": c.total_clicked or 0,
                "total_reviewed": c.total_reviewed or 0,
            }
            for c in campaigns
        ],
        "total": len(campaigns),
    }


@router.get("/stats")
async def outcome_stats(
    key: VerifiedKey = Depends(resolve_api_key),
    sink: OutcomeSink = Depends(get_outcome_sink),
):
    """Routing outcome totals for the key's tenant."""
    return await sink.stats_for_tenant(key.tenant_id)
