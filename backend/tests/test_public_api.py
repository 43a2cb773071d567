"""HTTP tests for the API-key authenticated reporting API."""

import pytest
import pytest_asyncio

BASE = "/api/public/v1"


@pytest_asyncio.fixture
async def api_key_headers(client, auth_headers) -> dict:
    resp = await client.post("/api/v1/api-keys/", json={"name": "Reporting"}, headers=auth_headers)
    return {"Authorization": f"Bearer {resp.json()['raw_key']}"}


async def _finish_visit(client, rating: int, **final):
    opened = (await client.get("/api/v1/magic-link/abc123")).json()
    rated = (await client.post(
        "/api/v1/magic-link/abc123/steps",
        json={"session_token": opened["session_token"], "action": "rate", "rating": rating},
    )).json()
    return await client.post(
        "/api/v1/magic-link/abc123/steps",
        json={"session_token": rated["session_token"], **final},
    )


@pytest.mark.integration
class TestPublicAPI:

    async def test_campaign_funnel(self, client, api_key_headers, active_campaign):
        await _finish_visit(client, 5, action="choose_platform", platform="tripadvisor")
        await _finish_visit(client, 1, action="submit_feedback", text="Rude staff")

        resp = await client.get(f"{BASE}/campaigns", headers=api_key_headers)

        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 1
        campaign = data["data"][0]
        assert campaign["id"] == active_campaign.id
        assert campaign["total_opened"] == 2
        assert campaign["total_clicked"] == 1

    async def test_stats(self, client, api_key_headers, active_campaign):
        await _finish_visit(client, 5, action="choose_platform", platform="google")
        await _finish_visit(client, 4, action="decline")
        await _finish_visit(client, 2, action="submit_feedback", text="Long wait")

        stats = (await client.get(f"{BASE}/stats", headers=api_key_headers)).json()

        assert stats["total"] == 3
        assert stats["by_type"] == {"feedback": 1, "platform_referral": 1, "declined": 1}
        assert stats["average_rating"] == round((5 + 4 + 2) / 3, 2)

    async def test_tenant_isolation(self, client, api_key_headers, db_session):
        from db.models.tenant import Tenant
        from services.credential_vault import APIKeyRepository, CredentialVault

        other = Tenant(name="Other", slug="other-business")
        db_session.add(other)
        await db_session.flush()
        issued = await CredentialVault(APIKeyRepository(db_session)).issue_key(other.id, "Theirs")
        await db_session.commit()

        resp = await client.get(f"{BASE}/campaigns", headers={"X-API-Key": issued.raw_secret})

        assert resp.status_code == 200
        assert resp.json() == {"data": [], "total": 0}

    async def test_dashboard_token_is_not_an_api_key(self, client, auth_headers):
        resp = await client.get(f"{BASE}/stats", headers=auth_headers)
        assert resp.status_code == 401
