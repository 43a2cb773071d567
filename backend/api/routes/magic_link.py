"""Magic-link review flow (no login).

GET opens a link and returns everything the rating page needs plus a signed
session token. Each POST carries that token and one customer action, and
returns the next step with a fresh token until the flow is done.
"""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from core.constants import RoutingAction
from app.dependencies import get_magic_link_service
from services.magic_link_service import MagicLinkService

router = APIRouter()

DEFAULT_BUSINESS_NAME = "Our Business"


class StepRequest(BaseModel):
    session_token: str = Field(..., min_length=1)
    action: RoutingAction
    rating: Optional[int] = None
    text: Optional[str] = Field(default=None, max_length=5000)
    platform: Optional[str] = None


@router.get("/{token}")
async def open_magic_link(
    token: str,
    service: MagicLinkService = Depends(get_magic_link_service),
):
    """Resolve a magic link and start a visit at the rating step."""
    view = await service.open(token)
    tenant = view.campaign.tenant
    return {
        "campaign": {
            "id": view.campaign.id,
            "name": view.campaign.name,
            "reputation_protection": view.router.policy.reputation_protection_enabled,
            "reputation_threshold": view.router.policy.reputation_threshold,
        },
        "business": {
            "name": (tenant.name if tenant else None) or DEFAULT_BUSINESS_NAME,
            "logo_url": tenant.logo_url if tenant else None,
        },
        "platforms": [asdict(c) for c in view.router.platform_choices()],
        "state": view.session.state.value,
        "step": view.router.step_copy(view.session),
        "session_token": view.session_token,
    }


@router.post("/{token}/steps")
async def submit_step(
    token: str,
    body: StepRequest,
    service: MagicLinkService = Depends(get_magic_link_service),
):
    """Apply one customer action to the visit carried by ``session_token``."""
    result = await service.step(
        token,
        body.session_token,
        body.action,
        rating=body.rating,
        text=body.text,
        platform=body.platform,
    )
    session = result.session
    return {
        "state": session.state.value,
        "rating": session.rating,
        "step": result.router.step_copy(session),
        "session_token": result.session_token,
        "outcome": session.outcome.as_dict() if session.outcome else None,
        "redirect_url": result.redirect_url,
        "message": result.router.closing_message(session) if session.is_done else None,
    }
