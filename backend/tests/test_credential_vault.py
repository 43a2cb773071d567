"""Tests for the credential vault (tenant API keys)."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select, text

from core.crypto import SecretCipher, generate_master_key, hash_secret
from core.exceptions import ConfigurationError, IntegrityError, NotFoundError, ValidationError
from db.models.api_key import APIKey
from db.models.tenant import Tenant
from services.credential_vault import APIKeyRepository, CredentialVault, VerifiedKey


@pytest.mark.integration
class TestIssueAndVerify:

    async def test_issue_returns_raw_secret_once(self, vault, test_tenant):
        issued = await vault.issue_key(test_tenant.id, "Zapier")
        record = issued.record

        assert issued.raw_secret.startswith("tlv_")
        assert record.tenant_id == test_tenant.id
        assert record.name == "Zapier"
        assert record.is_active is True
        assert record.key_hash == hash_secret(issued.raw_secret)
        assert record.key_prefix == issued.raw_secret[:10] + "..."
        assert issued.raw_secret not in record.encrypted_key
        assert record.expires_at is None

    async def test_verify_valid_key(self, vault, test_tenant):
        issued = await vault.issue_key(test_tenant.id, "Zapier")

        verified = await vault.verify(issued.raw_secret)

        assert verified == VerifiedKey(tenant_id=test_tenant.id, credential_id=issued.record.id)

    async def test_verify_records_usage(self, vault, test_tenant):
        issued = await vault.issue_key(test_tenant.id, "Zapier")

        await vault.verify(issued.raw_secret)
        await vault.verify(issued.raw_secret)

        assert issued.record.usage_count == 2
        assert issued.record.last_used_at is not None

    async def test_failed_usage_update_keeps_session_usable(self, vault, db_session, test_tenant):
        issued = await vault.issue_key(test_tenant.id, "Zapier")
        credential_id = issued.record.id
        await db_session.commit()
        await db_session.execute(text(
            "CREATE TRIGGER block_usage BEFORE UPDATE ON api_keys "
            "BEGIN SELECT RAISE(ABORT, 'usage writes disabled'); END"
        ))

        verified = await vault.verify(issued.raw_secret)
        assert verified == VerifiedKey(tenant_id=test_tenant.id, credential_id=credential_id)

        # Later work in the same transaction still runs and commits
        tenants = await db_session.execute(select(Tenant))
        assert [t.id for t in tenants.scalars()] == [test_tenant.id]
        await db_session.commit()

        record = await db_session.get(APIKey, credential_id)
        await db_session.refresh(record)
        assert record.usage_count == 0
        assert record.last_used_at is None

    @pytest.mark.parametrize("raw", ["", "tlv_does-not-exist", "x" * 500, "tlv_\ud800", "tlv_\ud800abc", None, 42])
    async def test_verify_unknown_or_malformed_returns_none(self, vault, test_tenant, raw):
        await vault.issue_key(test_tenant.id, "Zapier")
        assert await vault.verify(raw) is None

    async def test_revoked_key_fails(self, vault, test_tenant):
        issued = await vault.issue_key(test_tenant.id, "Zapier")

        await vault.revoke(issued.record.id)

        assert await vault.verify(issued.raw_secret) is None

    async def test_revoke_is_idempotent(self, vault, test_tenant):
        issued = await vault.issue_key(test_tenant.id, "Zapier")

        first = await vault.revoke(issued.record.id)
        second = await vault.revoke(issued.record.id)

        assert first.is_active is False
        assert second.is_active is False

    async def test_revoke_unknown_key(self, vault):
        with pytest.raises(NotFoundError):
            await vault.revoke("missing-id")

    async def test_revoke_other_tenants_key(self, vault, test_tenant):
        issued = await vault.issue_key(test_tenant.id, "Zapier")
        with pytest.raises(NotFoundError):
            await vault.revoke(issued.record.id, tenant_id="another-tenant")

    async def test_expired_key_fails(self, vault, test_tenant, db_session):
        issued = await vault.issue_key(test_tenant.id, "Short lived", expires_in_days=1)
        assert await vault.verify(issued.raw_secret) is not None

        issued.record.expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
        await db_session.flush()

        assert await vault.verify(issued.raw_secret) is None

    async def test_expiry_is_set_from_days(self, vault, test_tenant):
        before = datetime.now(timezone.utc)
        issued = await vault.issue_key(test_tenant.id, "Monthly", expires_in_days=30)

        expires_at = issued.record.expires_at.replace(tzinfo=timezone.utc)
        assert before + timedelta(days=30) - timedelta(minutes=1) < expires_at
        assert expires_at < before + timedelta(days=30, minutes=1)

    @pytest.mark.parametrize("name", ["", "   "])
    async def test_empty_name_rejected(self, vault, test_tenant, name):
        with pytest.raises(ValidationError):
            await vault.issue_key(test_tenant.id, name)

    @pytest.mark.parametrize("days", [0, -5])
    async def test_non_positive_expiry_rejected(self, vault, test_tenant, days):
        with pytest.raises(ValidationError):
            await vault.issue_key(test_tenant.id, "Zapier", expires_in_days=days)

    async def test_toggle_active(self, vault, test_tenant):
        issued = await vault.issue_key(test_tenant.id, "Zapier")

        record = await vault.toggle_active(issued.record.id, tenant_id=test_tenant.id)
        assert record.is_active is False
        assert await vault.verify(issued.raw_secret) is None

        record = await vault.toggle_active(issued.record.id, tenant_id=test_tenant.id)
        assert record.is_active is True
        assert await vault.verify(issued.raw_secret) is not None

    async def test_list_keys_scoped_to_tenant(self, vault, test_tenant, db_session):
        from db.models.tenant import Tenant

        other = Tenant(name="Other", slug="other-business")
        db_session.add(other)
        await db_session.flush()

        await vault.issue_key(test_tenant.id, "One")
        await vault.issue_key(test_tenant.id, "Two")
        await vault.issue_key(other.id, "Foreign")

        keys = await vault.list_keys(test_tenant.id)

        assert sorted(k.name for k in keys) == ["One", "Two"]


@pytest.mark.integration
class TestEncryptionAtRest:

    async def test_reveal_decrypts_stored_key(self, vault, test_tenant):
        issued = await vault.issue_key(test_tenant.id, "Zapier")
        assert await vault.reveal(issued.record.id) == issued.raw_secret

    async def test_tampered_ciphertext_raises_integrity_error(self, vault, test_tenant):
        issued = await vault.issue_key(test_tenant.id, "Zapier")
        iv, tag, ciphertext = issued.record.encrypted_key.split(":")
        flipped = bytearray(bytes.fromhex(ciphertext))
        flipped[-1] ^= 0xFF
        issued.record.encrypted_key = f"{iv}:{tag}:{flipped.hex()}"

        with pytest.raises(IntegrityError):
            await vault.reveal(issued.record.id)

    async def test_verify_does_not_need_decryption(self, vault, test_tenant):
        issued = await vault.issue_key(test_tenant.id, "Zapier")
        issued.record.encrypted_key = "garbage"

        assert await vault.verify(issued.raw_secret) is not None

    async def test_reencrypt_all_under_new_key(self, vault, test_tenant, db_session):
        first = await vault.issue_key(test_tenant.id, "One")
        second = await vault.issue_key(test_tenant.id, "Two")
        new_cipher = SecretCipher.from_hex(generate_master_key())

        count = await vault.reencrypt_all(new_cipher)

        assert count == 2
        assert new_cipher.decrypt(first.record.encrypted_key) == first.raw_secret
        assert new_cipher.decrypt(second.record.encrypted_key) == second.raw_secret
        # Hash lookups are unaffected by rotation
        assert await vault.verify(first.raw_secret) is not None

    async def test_missing_master_key_surfaces_on_use(self, db_session, test_tenant, monkeypatch):
        monkeypatch.setattr(
            "services.credential_vault.get_cipher", lambda: SecretCipher.from_hex("")
        )
        vault = CredentialVault(APIKeyRepository(db_session))

        with pytest.raises(ConfigurationError):
            await vault.issue_key(test_tenant.id, "Zapier")
