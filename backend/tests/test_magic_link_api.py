"""HTTP tests for campaigns and the magic-link review flow."""

import pytest

BASE = "/api/v1/magic-link"


async def _open(client, token: str = "abc123") -> dict:
    resp = await client.get(f"{BASE}/{token}")
    assert resp.status_code == 200, resp.text
    return resp.json()


async def _step(client, session_token: str, action: str, token: str = "abc123", **fields):
    return await client.post(
        f"{BASE}/{token}/steps",
        json={"session_token": session_token, "action": action, **fields},
    )


@pytest.mark.integration
class TestOpenMagicLink:

    async def test_open_returns_rating_step(self, client, active_campaign, test_tenant):
        data = await _open(client)

        assert data["state"] == "rating"
        assert data["campaign"]["id"] == active_campaign.id
        assert data["campaign"]["reputation_threshold"] == 3
        assert data["business"]["name"] == test_tenant.name
        assert [p["id"] for p in data["platforms"]] == ["google", "tripadvisor"]
        assert data["step"]["title"] == "How was your experience?"
        assert data["session_token"]

    async def test_unknown_token(self, client, active_campaign):
        resp = await client.get(f"{BASE}/nope")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Magic link not found or expired"

    async def test_paused_campaign_is_gone(self, client, auth_headers, active_campaign):
        await client.patch(
            f"/api/v1/campaigns/{active_campaign.id}",
            json={"status": "paused"},
            headers=auth_headers,
        )
        resp = await client.get(f"{BASE}/abc123")
        assert resp.status_code == 410

    async def test_open_counts_visits(self, client, auth_headers, active_campaign):
        await _open(client)
        await _open(client)

        resp = await client.get(f"/api/v1/campaigns/{active_campaign.id}", headers=auth_headers)
        assert resp.json()["total_opened"] == 2


@pytest.mark.integration
class TestRoutingFlow:

    async def test_low_rating_goes_to_private_feedback(self, client, auth_headers, active_campaign):
        opened = await _open(client)

        resp = await _step(client, opened["session_token"], "rate", rating=2)
        assert resp.status_code == 200
        rated = resp.json()
        assert rated["state"] == "feedback"
        assert rated["outcome"] is None

        resp = await _step(client, rated["session_token"], "submit_feedback", text="Service was slow")
        done = resp.json()
        assert done["state"] == "done"
        assert done["outcome"] == {"type": "feedback", "rating": 2, "text": "Service was slow"}
        assert done["redirect_url"] is None
        assert done["session_token"] is None
        assert "improving" in done["message"]

        outcomes = (await client.get(
            f"/api/v1/campaigns/{active_campaign.id}/outcomes", headers=auth_headers
        )).json()
        assert len(outcomes) == 1
        assert outcomes[0]["type"] == "feedback"
        assert outcomes[0]["feedback_text"] == "Service was slow"

        campaign = (await client.get(
            f"/api/v1/campaigns/{active_campaign.id}", headers=auth_headers
        )).json()
        assert campaign["total_clicked"] == 0

    async def test_high_rating_goes_to_platforms(self, client, auth_headers, active_campaign):
        opened = await _open(client)

        rated = (await _step(client, opened["session_token"], "rate", rating=5)).json()
        assert rated["state"] == "platforms"
        assert rated["step"]["title"] == "Great!"

        done = (await _step(client, rated["session_token"], "choose_platform", platform="google")).json()
        assert done["outcome"] == {"type": "platform_referral", "rating": 5, "platform": "google"}
        assert done["redirect_url"].startswith("https://search.google.com")

        campaign = (await client.get(
            f"/api/v1/campaigns/{active_campaign.id}", headers=auth_headers
        )).json()
        assert campaign["total_clicked"] == 1

    async def test_customer_can_override_to_public_review(self, client, active_campaign):
        opened = await _open(client)
        rated = (await _step(client, opened["session_token"], "rate", rating=1)).json()

        platforms = (await _step(client, rated["session_token"], "public_review")).json()
        assert platforms["state"] == "platforms"
        assert platforms["rating"] == 1

        done = (await _step(client, platforms["session_token"], "decline")).json()
        assert done["outcome"] == {"type": "declined", "rating": 1}

    async def test_cannot_skip_feedback_step(self, client, active_campaign):
        opened = await _open(client)
        rated = (await _step(client, opened["session_token"], "rate", rating=1)).json()

        resp = await _step(client, rated["session_token"], "choose_platform", platform="google")
        assert resp.status_code == 422

    async def test_rating_token_cannot_be_reused_to_rerate(self, client, auth_headers, active_campaign):
        opened = await _open(client)
        rated = (await _step(client, opened["session_token"], "rate", rating=1)).json()
        assert rated["state"] == "feedback"

        resp = await _step(client, opened["session_token"], "rate", rating=5)
        assert resp.status_code == 422
        assert resp.json()["detail"] == "This visit has already been rated"

        # The original feedback path still works
        done = (await _step(client, rated["session_token"], "submit_feedback", text="Cold food")).json()
        assert done["outcome"] == {"type": "feedback", "rating": 1, "text": "Cold food"}

        outcomes = (await client.get(
            f"/api/v1/campaigns/{active_campaign.id}/outcomes", headers=auth_headers
        )).json()
        assert [o["type"] for o in outcomes] == ["feedback"]

    async def test_separate_visits_rate_independently(self, client, active_campaign):
        first = await _open(client)
        second = await _open(client)

        low = await _step(client, first["session_token"], "rate", rating=1)
        high = await _step(client, second["session_token"], "rate", rating=5)
        assert low.json()["state"] == "feedback"
        assert high.json()["state"] == "platforms"

    async def test_replayed_final_step_records_once(self, client, auth_headers, active_campaign):
        opened = await _open(client)
        rated = (await _step(client, opened["session_token"], "rate", rating=4)).json()

        first = await _step(client, rated["session_token"], "choose_platform", platform="google")
        second = await _step(client, rated["session_token"], "choose_platform", platform="google")
        assert first.status_code == second.status_code == 200

        outcomes = (await client.get(
            f"/api/v1/campaigns/{active_campaign.id}/outcomes", headers=auth_headers
        )).json()
        assert len(outcomes) == 1

    @pytest.mark.parametrize("rating", [0, 6])
    async def test_out_of_range_rating(self, client, active_campaign, rating):
        opened = await _open(client)
        resp = await _step(client, opened["session_token"], "rate", rating=rating)
        assert resp.status_code == 422

    async def test_empty_feedback_rejected(self, client, active_campaign):
        opened = await _open(client)
        rated = (await _step(client, opened["session_token"], "rate", rating=1)).json()

        resp = await _step(client, rated["session_token"], "submit_feedback", text="   ")
        assert resp.status_code == 422

    async def test_platform_not_offered(self, client, active_campaign):
        opened = await _open(client)
        rated = (await _step(client, opened["session_token"], "rate", rating=5)).json()

        resp = await _step(client, rated["session_token"], "choose_platform", platform="yelp")
        assert resp.status_code == 422

    async def test_forged_session_token(self, client, active_campaign):
        resp = await _step(client, "forged.token.value", "rate", rating=5)
        assert resp.status_code == 422
        assert resp.json()["detail"] == "Invalid routing session"

    async def test_unknown_action(self, client, active_campaign):
        opened = await _open(client)
        resp = await _step(client, opened["session_token"], "teleport")
        assert resp.status_code == 422


@pytest.mark.integration
class TestCampaignsAPI:

    async def test_create_and_activate(self, client, auth_headers):
        resp = await client.post(
            "/api/v1/campaigns/",
            json={
                "name": "Summer",
                "target_platforms": ["trustpilot"],
                "reputation_protection": True,
                "reputation_threshold": 4,
            },
            headers=auth_headers,
        )
        assert resp.status_code == 201, resp.text
        campaign = resp.json()
        assert campaign["status"] == "draft"
        assert campaign["magic_link_url"].startswith("http://localhost:3003/r/")
        token = campaign["magic_link_url"].rsplit("/", 1)[-1]

        assert (await client.get(f"{BASE}/{token}")).status_code == 410

        resp = await client.patch(
            f"/api/v1/campaigns/{campaign['id']}", json={"status": "active"}, headers=auth_headers
        )
        assert resp.json()["status"] == "active"

        opened = await _open(client, token)
        rated = (await _step(client, opened["session_token"], "rate", token=token, rating=3)).json()
        assert rated["state"] == "feedback"

    async def test_threshold_out_of_range(self, client, auth_headers):
        resp = await client.post(
            "/api/v1/campaigns/",
            json={"name": "Bad", "reputation_threshold": 9},
            headers=auth_headers,
        )
        assert resp.status_code == 422

    async def test_list_scoped_to_tenant(self, client, auth_headers, active_campaign):
        data = (await client.get("/api/v1/campaigns/", headers=auth_headers)).json()
        assert [c["id"] for c in data] == [active_campaign.id]

    async def test_other_tenant_gets_404(self, client, active_campaign):
        from core.security import create_access_token

        token = create_access_token("u", "u@example.com", "another-tenant")
        resp = await client.get(
            f"/api/v1/campaigns/{active_campaign.id}",
            headers={"Authorization": f"Bearer {token}"},
        )
        assert resp.status_code == 404
