"""Integration credentials: encrypted third-party secrets per tenant."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.crypto import SecretCipher, get_cipher
from core.exceptions import NotFoundError, ValidationError
from db.models.integration import Integration
from services.base import BaseService

logger = logging.getLogger(__name__)


class IntegrationService(BaseService[Integration]):
    """CRUD for integrations. The credentials payload is write-only."""

    def __init__(self, db: AsyncSession, cipher: Optional[SecretCipher] = None):
        super().__init__(Integration, db)
        self._cipher = cipher

    @property
    def cipher(self) -> SecretCipher:
        if self._cipher is None:
            self._cipher = get_cipher()
        return self._cipher

    def _seal(self, credentials: Optional[dict]) -> Optional[str]:
        if credentials is None:
            return None
        return self.cipher.encrypt(json.dumps(credentials, sort_keys=True))

    async def create_integration(
        self,
        tenant_id: str,
        type: str,
        name: str,
        config: Optional[dict] = None,
        credentials: Optional[dict] = None,
        created_by: Optional[str] = None,
    ) -> Integration:
        if not type or not name:
            raise ValidationError("Type and name are required")
        return await self.create({
            "tenant_id": tenant_id,
            "type": type,
            "name": name,
            "config": config,
            "encrypted_credentials": self._seal(credentials),
            "is_active": True,
            "created_by": created_by,
        })

    async def list_integrations(self, tenant_id: str) -> Sequence[Integration]:
        items, _ = await self.list(tenant_id=tenant_id, limit=500)
        return items

    async def get_integration(self, integration_id: str, tenant_id: str) -> Integration:
        integration = await self.get_by_id_and_tenant(integration_id, tenant_id)
        if not integration:
            raise NotFoundError("Integration not found")
        return integration

    async def update_integration(
        self,
        integration_id: str,
        tenant_id: str,
        changes: dict[str, Any],
    ) -> Integration:
        """Apply a partial update; ``credentials`` (if present) is re-encrypted."""
        integration = await self.get_integration(integration_id, tenant_id)

        for field in ("name", "is_active", "config"):
            if field in changes and changes[field] is not None:
                setattr(integration, field, changes[field])
        if "credentials" in changes and changes["credentials"] is not None:
            integration.encrypted_credentials = self._seal(changes["credentials"])

        await self.db.flush()
        await self.db.refresh(integration)
        return integration

    async def delete_integration(self, integration_id: str, tenant_id: str) -> None:
        integration = await self.get_integration(integration_id, tenant_id)
        integration.soft_delete()
        await self.db.flush()

    async def get_credentials(self, integration_id: str, tenant_id: str) -> Optional[dict]:
        """Decrypt the credentials payload for internal use (never expose via API).

        Raises:
            NotFoundError: If the integration does not exist
            IntegrityError: If the stored ciphertext cannot be authenticated
        """
        integration = await self.get_integration(integration_id, tenant_id)
        if integration.encrypted_credentials is None:
            return None
        payload = json.loads(self.cipher.decrypt(integration.encrypted_credentials))
        integration.last_used_at = datetime.now(timezone.utc)
        await self.db.flush()
        return payload

    async def reencrypt_all(self, new_cipher: SecretCipher) -> int:
        """Re-wrap every stored credentials payload under a new master key."""
        result = await self.db.execute(
            select(Integration).where(Integration.encrypted_credentials.is_not(None))
        )
        count = 0
        for integration in result.scalars().all():
            plaintext = self.cipher.decrypt(integration.encrypted_credentials)
            integration.encrypted_credentials = new_cipher.encrypt(plaintext)
            count += 1
        await self.db.flush()
        self._cipher = new_cipher
        return count
