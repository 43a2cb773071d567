"""Re-encrypt stored secrets under a new master key.

Decrypts every stored API-key ciphertext and integration credentials payload
with the current key and re-encrypts it with the new one, in one transaction.
Update API_KEY_ENCRYPTION_KEY to the new key once this succeeds.

Run: python -m scripts.rotate_master_key --new-key <64 hex chars>
"""

import argparse
import asyncio
import sys
import os
from typing import Optional

# Ensure project root is in path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Rotate the credential master key.")
    parser.add_argument("--new-key", required=True, help="New master key (64 hex chars)")
    parser.add_argument(
        "--old-key",
        default=None,
        help="Current master key (defaults to API_KEY_ENCRYPTION_KEY)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Decrypt and re-encrypt everything, then roll back",
    )
    return parser.parse_args(argv)


async def rotate(new_key: str, old_key: Optional[str] = None, dry_run: bool = False) -> tuple[int, int]:
    """Re-encrypt all stored secrets. Returns (api_keys, integrations) counts."""
    from app.config import get_settings
    from core.crypto import SecretCipher
    from db.database import init_db, session_scope
    from services.credential_vault import APIKeyRepository, CredentialVault
    from services.integration_service import IntegrationService

    settings = get_settings()
    old_cipher = SecretCipher.from_hex(old_key or settings.API_KEY_ENCRYPTION_KEY)
    new_cipher = SecretCipher.from_hex(new_key)

    await init_db()

    async with session_scope() as db:
        vault = CredentialVault(APIKeyRepository(db), cipher=old_cipher)
        integrations = IntegrationService(db, cipher=old_cipher)
        key_count = await vault.reencrypt_all(new_cipher)
        integration_count = await integrations.reencrypt_all(new_cipher)
        if dry_run:
            await db.rollback()

    return key_count, integration_count


def main(argv=None):
    args = parse_args(argv)
    key_count, integration_count = asyncio.run(
        rotate(args.new_key, old_key=args.old_key, dry_run=args.dry_run)
    )
    mode = "[dry-run]" if args.dry_run else "[rotate]"
    print(f"{mode} Re-encrypted {key_count} API keys and {integration_count} integrations")
    if not args.dry_run:
        print("[rotate] Now set API_KEY_ENCRYPTION_KEY to the new key and restart.")


if __name__ == "__main__":
    main()
