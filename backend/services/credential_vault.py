"""Credential vault: issue, verify, revoke and rotate tenant API keys.

The raw key is generated here and handed back exactly once from
``issue_key``. What gets stored is its SHA-256 hash (for verification), an
AES-256-GCM ciphertext (for rotation tooling) and a short clear-text prefix
(for display).

``verify`` never tells its caller *why* a key was rejected; the reason is
only logged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError as SQLAlchemyIntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.crypto import SecretCipher, display_prefix, generate_secret, get_cipher, hash_secret
from core.exceptions import ConflictError, NotFoundError, ValidationError
from db.models.api_key import APIKey
from services.base import BaseService

logger = logging.getLogger(__name__)


@dataclass
class IssuedKey:
    """Result of ``issue_key``: the stored record and the one-time raw secret."""

    record: APIKey
    raw_secret: str


@dataclass(frozen=True)
class VerifiedKey:
    """Identity resolved from a valid raw secret."""

    tenant_id: str
    credential_id: str


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class APIKeyRepository(BaseService[APIKey]):
    """Persistence for API key records. ``key_hash`` is unique."""

    def __init__(self, db: AsyncSession):
        super().__init__(APIKey, db)

    async def insert(self, record: APIKey) -> APIKey:
        """Persist a new record.

        Raises:
            ConflictError: If a record with the same hash already exists
        """
        self.db.add(record)
        try:
            await self.db.flush()
        except SQLAlchemyIntegrityError:
            await self.db.rollback()
            raise ConflictError("An API key with this secret already exists")
        await self.db.refresh(record)
        return record

    async def find_by_hash(self, key_hash: str) -> Optional[APIKey]:
        result = await self.db.execute(select(APIKey).where(APIKey.key_hash == key_hash))
        return result.scalar_one_or_none()

    async def find_by_id(self, credential_id: str) -> Optional[APIKey]:
        return await self.get_by_id(credential_id)

    async def list_for_tenant(self, tenant_id: str) -> Sequence[APIKey]:
        result = await self.db.execute(
            select(APIKey)
            .where(APIKey.tenant_id == tenant_id)
            .order_by(APIKey.created_at.desc())
        )
        return result.scalars().all()

    async def all_records(self) -> Sequence[APIKey]:
        result = await self.db.execute(select(APIKey).order_by(APIKey.created_at))
        return result.scalars().all()


class CredentialVault:
    """Tenant API key lifecycle.

    Args:
        repository: Persistence collaborator for key records
        cipher: Cipher keyed by the master key; when omitted the process-wide
            cipher is built from settings on first use, so a missing master
            key surfaces as ``ConfigurationError`` at that point
        prefix: Recognisable prefix for raw secrets
        display_length: Characters of the raw secret kept as display hint
    """

    def __init__(
        self,
        repository: APIKeyRepository,
        cipher: Optional[SecretCipher] = None,
        prefix: str = "tlv",
        display_length: int = 10,
    ):
        self.repository = repository
        self._cipher = cipher
        self.prefix = prefix
        self.display_length = display_length

    @property
    def cipher(self) -> SecretCipher:
        if self._cipher is None:
            self._cipher = get_cipher()
        return self._cipher

    # ─── Primitives ────────────────────────────────────────

    def generate_secret(self) -> str:
        return generate_secret(self.prefix)

    def hash(self, raw_secret: str) -> str:
        return hash_secret(raw_secret)

    def encrypt(self, plaintext: str) -> str:
        return self.cipher.encrypt(plaintext)

    def decrypt(self, ciphertext: str) -> str:
        return self.cipher.decrypt(ciphertext)

    # ─── Lifecycle ─────────────────────────────────────────

    async def issue_key(
        self,
        tenant_id: str,
        display_name: str,
        expires_in_days: Optional[int] = None,
        created_by: Optional[str] = None,
    ) -> IssuedKey:
        """Create a new API key for a tenant.

        The returned ``raw_secret`` must be shown to the user now; there is no
        way to get it back through this API afterwards.

        Raises:
            ValidationError: If the name is empty or the expiry is not positive
            ConflictError: If the generated secret collides with an existing one
        """
        if not display_name or not display_name.strip():
            raise ValidationError("API key name is required")
        if expires_in_days is not None and expires_in_days <= 0:
            raise ValidationError("expires_in_days must be a positive number of days")

        raw_secret = self.generate_secret()
        expires_at = None
        if expires_in_days:
            expires_at = datetime.now(timezone.utc) + timedelta(days=expires_in_days)

        record = APIKey(
            tenant_id=tenant_id,
            name=display_name.strip(),
            key_hash=self.hash(raw_secret),
            key_prefix=display_prefix(raw_secret, self.display_length),
            encrypted_key=self.encrypt(raw_secret),
            is_active=True,
            expires_at=expires_at,
            created_by=created_by,
        )
        record = await self.repository.insert(record)
        logger.info(
            "API key issued",
            extra={"tenant_id": tenant_id, "credential_id": record.id, "prefix": record.key_prefix},
        )
        return IssuedKey(record=record, raw_secret=raw_secret)

    async def verify(self, raw_secret: str) -> Optional[VerifiedKey]:
        """Resolve a raw secret to its tenant, or None.

        None covers every failure (unknown, revoked, expired, malformed) so
        that callers cannot be used as an oracle.
        """
        if not isinstance(raw_secret, str) or not raw_secret:
            return None

        record = await self.repository.find_by_hash(self.hash(raw_secret))

        reason = None
        if record is None:
            reason = "no_match"
        elif not record.is_active:
            reason = "inactive"
        elif record.expires_at is not None and _as_utc(record.expires_at) <= datetime.now(timezone.utc):
            reason = "expired"

        if reason:
            logger.debug(
                "API key verification failed",
                extra={"reason": reason, "credential_id": record.id if record else None},
            )
            return None

        verified = VerifiedKey(tenant_id=record.tenant_id, credential_id=record.id)
        await self._touch(record)
        return verified

    async def _touch(self, record: APIKey) -> None:
        # Best effort: a failed usage update must not fail authentication.
        # The savepoint keeps a failure from poisoning the caller's transaction.
        db = self.repository.db
        credential_id = record.id
        try:
            async with db.begin_nested():
                record.last_used_at = datetime.now(timezone.utc)
                record.usage_count = (record.usage_count or 0) + 1
                await db.flush()
        except SQLAlchemyError as exc:
            logger.warning(
                "Could not record API key usage: %s", exc,
                extra={"credential_id": credential_id},
            )

    async def _get(self, credential_id: str, tenant_id: Optional[str]) -> APIKey:
        record = await self.repository.find_by_id(credential_id)
        if record is None or (tenant_id is not None and record.tenant_id != tenant_id):
            raise NotFoundError("API key not found")
        return record

    async def revoke(self, credential_id: str, tenant_id: Optional[str] = None) -> APIKey:
        """Deactivate a key. Revoking an already revoked key is a no-op.

        Raises:
            NotFoundError: If the key does not exist (or belongs to another tenant)
        """
        record = await self._get(credential_id, tenant_id)
        if record.is_active:
            await self.repository.update(record.id, {"is_active": False})
            logger.info("API key revoked", extra={"credential_id": record.id})
        return record

    async def toggle_active(self, credential_id: str, tenant_id: Optional[str] = None) -> APIKey:
        """Flip ``is_active``.

        Raises:
            NotFoundError: If the key does not exist (or belongs to another tenant)
        """
        record = await self._get(credential_id, tenant_id)
        record.is_active = not record.is_active
        await self.repository.db.flush()
        logger.info(
            "API key %s", "activated" if record.is_active else "deactivated",
            extra={"credential_id": record.id},
        )
        return record

    async def list_keys(self, tenant_id: str) -> Sequence[APIKey]:
        return await self.repository.list_for_tenant(tenant_id)

    # ─── Operator tooling ──────────────────────────────────

    async def reveal(self, credential_id: str) -> str:
        """Decrypt a stored raw key. Operator tooling only, never end users.

        Raises:
            NotFoundError: If the key does not exist
            IntegrityError: If the ciphertext cannot be authenticated
        """
        record = await self._get(credential_id, None)
        logger.warning("API key plaintext revealed", extra={"credential_id": record.id})
        return self.decrypt(record.encrypted_key)

    async def reencrypt_all(self, new_cipher: SecretCipher) -> int:
        """Re-wrap every stored ciphertext under a new master key.

        Stops at the first record the current key cannot decrypt.

        Returns:
            Number of records re-encrypted
        """
        count = 0
        for record in await self.repository.all_records():
            plaintext = self.decrypt(record.encrypted_key)
            record.encrypted_key = new_cipher.encrypt(plaintext)
            count += 1
        await self.repository.db.flush()
        self._cipher = new_cipher
        return count
