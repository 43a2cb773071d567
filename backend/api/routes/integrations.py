"""Integration credential endpoints.

Credentials are accepted on create/update, encrypted with AES-256-GCM, and
never returned by any endpoint.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
import logging

from core.constants import IntegrationType
from core.security import TokenPayload, get_current_user
from app.dependencies import get_integration_service
from db.models.integration import Integration
from services.integration_service import IntegrationService

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class IntegrationCreateRequest(BaseModel):
    """Request body to create an integration."""
    type: IntegrationType
    name: str = Field(..., min_length=1, max_length=255)
    config: Optional[dict] = Field(default=None, description="Non-secret settings")
    credentials: Optional[dict] = Field(default=None, description="Secret payload (will be encrypted)")


class IntegrationUpdateRequest(BaseModel):
    """Request body to update an integration."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    is_active: Optional[bool] = None
    config: Optional[dict] = None
    credentials: Optional[dict] = Field(default=None, description="New secret payload (re-encrypted)")


class IntegrationResponse(BaseModel):
    """Public representation of an integration. Credentials are never included."""
    id: str
    type: str
    name: str
    is_active: bool
    config: Optional[dict] = None
    has_credentials: bool
    last_used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def _to_response(integration: Integration) -> dict:
    return {
        "id": integration.id,
        "type": integration.type,
        "name": integration.name,
        "is_active": integration.is_active,
        "config": integration.config,
        "has_credentials": integration.encrypted_credentials is not None,
        "last_used_at": integration.last_used_at,
        "created_at": integration.created_at,
        "updated_at": integration.updated_at,
    }


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/", response_model=list[IntegrationResponse])
async def list_integrations(
    current_user: TokenPayload = Depends(get_current_user),
    service: IntegrationService = Depends(get_integration_service),
):
    """List the tenant's integrations."""
    integrations = await service.list_integrations(current_user.tenant_id)
    return [_to_response(i) for i in integrations]


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=IntegrationResponse)
async def create_integration(
    body: IntegrationCreateRequest,
    current_user: TokenPayload = Depends(get_current_user),
    service: IntegrationService = Depends(get_integration_service),
):
    """Create an integration; the credentials payload is encrypted at rest."""
    integration = await service.create_integration(
        tenant_id=current_user.tenant_id,
        type=body.type.value,
        name=body.name,
        config=body.config,
        credentials=body.credentials,
        created_by=current_user.sub,
    )
    logger.info(f"Integration created: {integration.id} ({integration.type})")
    return _to_response(integration)


@router.put("/{integration_id}", response_model=IntegrationResponse)
async def update_integration(
    integration_id: str,
    body: IntegrationUpdateRequest,
    current_user: TokenPayload = Depends(get_current_user),
    service: IntegrationService = Depends(get_integration_service),
):
    """Update name, status, config and/or credentials."""
    integration = await service.update_integration(
        integration_id,
        current_user.tenant_id,
        body.model_dump(exclude_unset=True),
    )
    return _to_response(integration)


@router.delete("/{integration_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_integration(
    integration_id: str,
    current_user: TokenPayload = Depends(get_current_user),
    service: IntegrationService = Depends(get_integration_service),
):
    """Soft-delete an integration."""
    await service.delete_integration(integration_id, current_user.tenant_id)
