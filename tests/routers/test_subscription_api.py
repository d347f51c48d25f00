"""
Subscription tier changes through the API.
"""


class TestSubscription:
    async def test_default_is_free_active(self, client, headers):
        resp = await client.get("/api/subscription", headers=headers)
        assert resp.json()["subscription"]["subscription_tier"] == "free"
        assert resp.json()["subscription"]["subscription_status"] == "active"

    async def test_upgrade_cancel_reactivate(self, client, headers):
        resp = await client.post(
            "/api/subscription",
            json={"action": "upgrade", "tier": "pro", "stripe_customer_id": "cus_123"},
            headers=headers,
        )
        assert resp.status_code == 200
        sub = resp.json()["subscription"]
        assert (sub["subscription_tier"], sub["stripe_customer_id"]) == ("pro", "cus_123")

        resp = await client.post("/api/subscription", json={"action": "cancel"}, headers=headers)
        assert resp.json()["subscription"]["subscription_status"] == "cancelled"
        assert resp.json()["subscription"]["subscription_tier"] == "pro"

        resp = await client.post("/api/subscription", json={"action": "reactivate"}, headers=headers)
        assert resp.json()["subscription"]["subscription_status"] == "active"

    async def test_invalid_transition_is_400(self, client, headers):
        resp = await client.post("/api/subscription", json={"action": "cancel"}, headers=headers)
        assert resp.status_code == 400
        assert resp.json() == {"detail": "Free tier cannot be cancelled"}

    async def test_unknown_action_is_400(self, client, headers):
        resp = await client.post("/api/subscription", json={"action": "pause"}, headers=headers)
        assert resp.status_code == 400
        assert resp.json() == {"detail": "Invalid input data"}
