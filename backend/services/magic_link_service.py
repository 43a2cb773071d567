"""Magic-link flow: resolve a token, apply customer steps, record outcomes."""

import logging
from dataclasses import dataclass
from typing import Optional

from core.constants import RoutingAction
from core.exceptions import ValidationError
from db.models.campaign import Campaign
from services.campaign_service import CampaignService
from services.outcome_service import OutcomeSink
from services.review_router import ReviewRouter, RoutingSession
from services.routing_session import RoutingSessionCodec

logger = logging.getLogger(__name__)


@dataclass
class MagicLinkView:
    """What a customer sees when opening a magic link."""

    campaign: Campaign
    router: ReviewRouter
    session: RoutingSession
    session_token: str


@dataclass
class StepResult:
    """Session after one customer action."""

    router: ReviewRouter
    session: RoutingSession
    session_token: Optional[str] = None
    redirect_url: Optional[str] = None


class MagicLinkService:
    """Glue between the campaign store, the router and the outcome sink."""

    def __init__(self, campaigns: CampaignService, codec: RoutingSessionCodec, sink: OutcomeSink):
        self.campaigns = campaigns
        self.codec = codec
        self.sink = sink

    async def open(self, token: str) -> MagicLinkView:
        """Resolve the link and start a new visit in the rating step.

        Raises:
            NotFoundError: Unknown token
            GoneError: Campaign not active
        """
        campaign, policy = await self.campaigns.resolve(token)
        router = ReviewRouter(policy)
        session = router.start()
        session_token = self.codec.encode(campaign.id, self.codec.new_visit_id(), session)
        return MagicLinkView(campaign=campaign, router=router, session=session, session_token=session_token)

    async def step(
        self,
        token: str,
        session_token: str,
        action: RoutingAction,
        rating: Optional[int] = None,
        text: Optional[str] = None,
        platform: Optional[str] = None,
    ) -> StepResult:
        """Apply one action. Terminal steps hand the outcome to the sink."""
        campaign, policy = await self.campaigns.resolve(token, count_open=False)
        visit_id, session = self.codec.decode(session_token, campaign.id)
        router = ReviewRouter(policy)

        if action == RoutingAction.RATE:
            if rating is None:
                raise ValidationError("rating is required")
            session = router.rate(session, rating)
            # The rating token can be replayed; the server decides once per visit
            await self.sink.lock_rating(campaign, visit_id, session.rating)
        elif action == RoutingAction.SUBMIT_FEEDBACK:
            session = router.submit_feedback(session, text)
        elif action == RoutingAction.PUBLIC_REVIEW:
            session = router.request_public_review(session)
        elif action == RoutingAction.CHOOSE_PLATFORM:
            if not platform:
                raise ValidationError("platform is required")
            session = router.choose_platform(session, platform)
        elif action == RoutingAction.DECLINE:
            session = router.decline(session)
        else:
            raise ValidationError(f"Unknown action: {action}")

        if session.is_done:
            await self.sink.record(campaign, visit_id, session.outcome)
            redirect_url = None
            if session.outcome.platform:
                redirect_url = router.review_url(session.outcome.platform)
            return StepResult(router=router, session=session, redirect_url=redirect_url)

        return StepResult(
            router=router,
            session=session,
            session_token=self.codec.encode(campaign.id, visit_id, session),
        )
