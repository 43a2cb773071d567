"""API Key management endpoints.

Create, list, toggle and revoke tenant API keys for the public API.
Business admins only.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from core.security import TokenPayload, require_tenant_admin
from app.dependencies import get_vault
from db.models.api_key import APIKey
from services.credential_vault import CredentialVault

router = APIRouter()


class CreateAPIKeyRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    expires_in_days: Optional[int] = Field(default=None, ge=1, le=3650)


class APIKeyResponse(BaseModel):
    id: str
    name: str
    key_prefix: str
    is_active: bool
    usage_count: int
    last_used_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class CreatedAPIKeyResponse(APIKeyResponse):
    raw_key: str
    message: str = "API key created. Copy it now, you won't be able to see it again."


def _to_response(key: APIKey) -> dict:
    return {
        "id": key.id,
        "name": key.name,
        "key_prefix": key.key_prefix,
        "is_active": key.is_active,
        "usage_count": key.usage_count or 0,
        "last_used_at": key.last_used_at,
        "expires_at": key.expires_at,
        "created_at": key.created_at,
    }


@router.get("/", response_model=list[APIKeyResponse], summary="List API keys")
async def list_api_keys(
    current_user: TokenPayload = Depends(require_tenant_admin),
    vault: CredentialVault = Depends(get_vault),
):
    """List all API keys for the current tenant (no secret material)."""
    keys = await vault.list_keys(current_user.tenant_id)
    return [_to_response(k) for k in keys]


@router.post(
    "/",
    status_code=status.HTTP_201_CREATED,
    response_model=CreatedAPIKeyResponse,
    summary="Create API key",
)
async def create_api_key(
    request: CreateAPIKeyRequest,
    current_user: TokenPayload = Depends(require_tenant_admin),
    vault: CredentialVault = Depends(get_vault),
):
    """Create a new API key. The raw key is shown ONCE."""
    issued = await vault.issue_key(
        tenant_id=current_user.tenant_id,
        display_name=request.name,
        expires_in_days=request.expires_in_days,
        created_by=current_user.sub,
    )
    return {**_to_response(issued.record), "raw_key": issued.raw_secret}


@router.patch("/{key_id}", response_model=APIKeyResponse, summary="Toggle API key")
async def toggle_api_key(
    key_id: str,
    current_user: TokenPayload = Depends(require_tenant_admin),
    vault: CredentialVault = Depends(get_vault),
):
    """Activate or deactivate an API key."""
    key = await vault.toggle_active(key_id, tenant_id=current_user.tenant_id)
    return _to_response(key)


@router.delete("/{key_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Revoke API key")
async def revoke_api_key(
    key_id: str,
    current_user: TokenPayload = Depends(require_tenant_admin),
    vault: CredentialVault = Depends(get_vault),
):
    """Revoke an API key. The record is kept, inactive."""
    await vault.revoke(key_id, tenant_id=current_user.tenant_id)
