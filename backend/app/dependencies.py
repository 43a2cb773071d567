"""FastAPI dependency injection functions."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
import logging

import db.database as database
from app.config import get_settings
from services.campaign_service import CampaignService
from services.credential_vault import APIKeyRepository, CredentialVault
from services.integration_service import IntegrationService
from services.magic_link_service import MagicLinkService
from services.outcome_service import OutcomeSink
from services.routing_session import RoutingSessionCodec

logger = logging.getLogger(__name__)


async def get_db() -> AsyncSession:
    """
    Provide a database session for API endpoints.

    Yields an async SQLAlchemy session that is automatically
    committed on success or rolled back on error.
    """
    async with database.AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.error(f"Database error: {str(e)}")
            await session.rollback()
            raise


def get_vault(db: AsyncSession = Depends(get_db)) -> CredentialVault:
    """Credential vault bound to the request's session."""
    settings = get_settings()
    return CredentialVault(
        APIKeyRepository(db),
        prefix=settings.API_KEY_PREFIX,
        display_length=settings.API_KEY_DISPLAY_LENGTH,
    )


def get_integration_service(db: AsyncSession = Depends(get_db)) -> IntegrationService:
    return IntegrationService(db)


def get_campaign_service(db: AsyncSession = Depends(get_db)) -> CampaignService:
    settings = get_settings()
    return CampaignService(
        db,
        app_url=settings.APP_URL,
        token_bytes=settings.MAGIC_LINK_TOKEN_BYTES,
    )


def get_outcome_sink(db: AsyncSession = Depends(get_db)) -> OutcomeSink:
    return OutcomeSink(db)


def get_magic_link_service(
    campaigns: CampaignService = Depends(get_campaign_service),
    sink: OutcomeSink = Depends(get_outcome_sink),
) -> MagicLinkService:
    settings = get_settings()
    codec = RoutingSessionCodec(
        settings.SECRET_KEY,
        ttl_minutes=settings.ROUTING_SESSION_TTL_MINUTES,
    )
    return MagicLinkService(campaigns, codec, sink)
