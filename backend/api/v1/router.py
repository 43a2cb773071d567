"""API v1 aggregated routers.

All v1 endpoints are registered here and mounted in main.py: the dashboard
API under /api/v1 and the API-key reporting API under /api/public/v1.
"""

from fastapi import APIRouter

from api.routes import (
    health,
    api_keys,
    integrations,
    campaigns,
    magic_link,
    public,
)

api_v1_router = APIRouter()

# Health (no auth required)
api_v1_router.include_router(
    health.router,
    tags=["Health"],
)

# Tenant API keys (business admins)
api_v1_router.include_router(
    api_keys.router,
    prefix="/api-keys",
    tags=["API Keys"],
)

# Integration credentials
api_v1_router.include_router(
    integrations.router,
    prefix="/integrations",
    tags=["Integrations"],
)

# Campaigns
api_v1_router.include_router(
    campaigns.router,
    prefix="/campaigns",
    tags=["Campaigns"],
)

# Magic-link review flow (no auth)
api_v1_router.include_router(
    magic_link.router,
    prefix="/magic-link",
    tags=["Magic Link"],
)


public_api_router = APIRouter()

public_api_router.include_router(
    public.router,
    tags=["Public API"],
)
