"""Database seed script. Creates a demo tenant, API key and active campaign.

Run: python -m scripts.seed
"""

import asyncio
import sys
import os

# Ensure project root is in path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


async def seed():
    """Seed the database with demo data."""
    from app.config import get_settings
    from core.constants import CampaignStatus
    from core.security import create_access_token
    from db.database import init_db, session_scope
    from db.models.tenant import Tenant
    from services.campaign_service import CampaignService
    from services.credential_vault import APIKeyRepository, CredentialVault
    from sqlalchemy import select

    settings = get_settings()
    settings.validate_secrets()

    # Initialize DB tables
    await init_db()

    async with session_scope() as db:
        # 1. Create demo tenant
        slug = os.environ.get("SEED_TENANT_SLUG", "demo")
        result = await db.execute(select(Tenant).where(Tenant.slug == slug))
        tenant = result.scalar_one_or_none()

        if not tenant:
            tenant = Tenant(name="Demo Business", slug=slug, is_active=True)
            db.add(tenant)
            await db.flush()
            print(f"[seed] Created tenant: {tenant.name} ({tenant.id})")
        else:
            print(f"[seed] Tenant exists: {tenant.name}")

        # 2. Issue an API key for the public API
        vault = CredentialVault(
            APIKeyRepository(db),
            prefix=settings.API_KEY_PREFIX,
            display_length=settings.API_KEY_DISPLAY_LENGTH,
        )
        issued = await vault.issue_key(tenant.id, "Seed key")
        print(f"[seed] API key: {issued.raw_secret}")

        # 3. Active campaign with reputation protection
        campaigns = CampaignService(
            db,
            app_url=settings.APP_URL,
            token_bytes=settings.MAGIC_LINK_TOKEN_BYTES,
        )
        campaign = await campaigns.create_campaign(
            tenant_id=tenant.id,
            name="Post-visit review request",
            target_platforms=["google", "tripadvisor"],
            reputation_protection=True,
            reputation_threshold=3,
        )
        await campaigns.update_campaign(
            campaign.id, tenant.id, {"status": CampaignStatus.ACTIVE.value}
        )
        print(f"[seed] Magic link: {campaign.magic_link_url}")

    # 4. Dashboard token for local testing
    token = create_access_token("seed-admin", "admin@example.com", tenant.id, role="admin")
    print(f"[seed] Admin bearer token: {token}")
    print("[seed] Database seeded successfully!")


if __name__ == "__main__":
    asyncio.run(seed())
