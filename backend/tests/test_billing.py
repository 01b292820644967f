"""
Subscription tiers, upgrade requests and their admin review.
"""
import uuid


def _tier_name():
    return f"Team {uuid.uuid4().hex[:6]}"


class TestPublicBilling:

    def test_tiers_are_active_and_ordered(self, client):
        tiers = client.get("/v1/billing/tiers").json()["tiers"]
        seeded = [t["id"] for t in tiers if t["id"] in ("free", "starter", "pro", "enterprise")]
        assert seeded == ["free", "starter", "pro", "enterprise"]
        assert all(t["is_active"] is True for t in tiers)

    def test_subscription_usage(self, client, make_user):
        headers, _ = make_user(tier="starter")
        data = client.get("/v1/billing/subscription", headers=headers).json()
        assert data["tier"]["id"] == "starter"
        assert data["usage"] == {"avatars": 0, "max_avatars": 3}
        assert data["subscription"] is None

    def test_requires_login(self, client):
        assert client.get("/v1/billing/subscription").status_code == 401


class TestUpgradeRequests:

    def test_request_flow(self, client, make_user):
        headers, user = make_user(tier="free")
        r = client.post("/v1/billing/upgrade-requests", json={"tier_id": "pro", "message": "Need more avatars"},
                        headers=headers)
        assert r.status_code == 200, r.text
        request = r.json()["request"]
        assert request["status"] == "pending"
        assert request["current_tier_id"] == "free"

        mine = client.get("/v1/billing/upgrade-requests", headers=headers).json()["requests"]
        assert [m["id"] for m in mine] == [request["id"]]
        assert mine[0]["requested_tier_name"] == "Pro"
        assert mine[0]["user_email"] == user["email"]

        again = client.post("/v1/billing/upgrade-requests", json={"tier_id": "starter"}, headers=headers)
        assert again.status_code == 409
        assert again.json()["error"] == "You already have a pending upgrade request. Please wait for admin review."

    def test_same_tier(self, client, make_user):
        headers, _ = make_user(tier="pro")
        r = client.post("/v1/billing/upgrade-requests", json={"tier_id": "pro"}, headers=headers)
        assert r.status_code == 400
        assert r.json()["error"] == "You are already on this tier"

    def test_unknown_or_inactive_tier(self, client, make_user):
        admin, _ = make_user(admin_role="admin")
        name = _tier_name()
        tier = client.post("/v1/admin/tiers", json={"name": name, "display_name": name, "is_active": False},
                           headers=admin).json()["tier"]

        headers, _ = make_user(tier="free")
        for tier_id in ("nope", tier["id"]):
            r = client.post("/v1/billing/upgrade-requests", json={"tier_id": tier_id}, headers=headers)
            assert r.status_code == 404
            assert r.json()["error"] == "Tier not found"


class TestReview:

    def _request(self, client, make_user, tier_id="pro"):
        headers, user = make_user(tier="free")
        request = client.post("/v1/billing/upgrade-requests", json={"tier_id": tier_id}, headers=headers).json()["request"]
        return headers, user, request

    def test_approve_moves_user(self, client, make_user):
        admin, admin_user = make_user(admin_role="admin")
        headers, user, request = self._request(client, make_user)

        pending = client.get("/v1/admin/upgrade-requests?status=pending", headers=admin).json()["requests"]
        assert request["id"] in [p["id"] for p in pending]

        r = client.post(f"/v1/admin/upgrade-requests/{request['id']}/approve", json={"notes": "ok"}, headers=admin)
        assert r.status_code == 200, r.text
        reviewed = r.json()["request"]
        assert reviewed["status"] == "approved"
        assert reviewed["reviewed_by"] == admin_user["id"]
        assert reviewed["review_notes"] == "ok"

        sub = client.get("/v1/billing/subscription", headers=headers).json()
        assert sub["tier"]["id"] == "pro"
        assert sub["subscription"]["status"] == "active"

        logs = client.get("/v1/admin/audit-logs", headers=admin).json()["logs"]
        assert any(l["action"] == "upgrade.approve" and l["target_id"] == request["id"] for l in logs)

    def test_reject_without_body(self, client, make_user):
        admin, _ = make_user(admin_role="admin")
        headers, _, request = self._request(client, make_user)

        r = client.post(f"/v1/admin/upgrade-requests/{request['id']}/reject", headers=admin)
        assert r.json()["request"]["status"] == "rejected"
        assert client.get("/v1/billing/subscription", headers=headers).json()["tier"]["id"] == "free"

        again = client.post(f"/v1/admin/upgrade-requests/{request['id']}/approve", headers=admin)
        assert again.status_code == 409
        assert again.json()["error"] == "Upgrade request is already rejected"

    def test_unknown_request(self, client, make_user):
        admin, _ = make_user(admin_role="admin")
        r = client.post("/v1/admin/upgrade-requests/missing/approve", headers=admin)
        assert r.status_code == 404
        assert r.json()["error"] == "Upgrade request not found"


class TestTierAdmin:

    def test_create_update_delete(self, client, make_user):
        admin, _ = make_user(admin_role="admin")
        name = _tier_name()
        r = client.post("/v1/admin/tiers", json={
            "name": name, "display_name": "Team", "price_monthly": 49, "max_avatars": 25, "priority_support": True,
        }, headers=admin)
        assert r.status_code == 200, r.text
        tier = r.json()["tier"]
        assert tier["id"] == name.lower().replace(" ", "-")
        assert tier["max_avatars"] == 25
        assert tier["priority_support"] is True

        dup = client.post("/v1/admin/tiers", json={"name": name, "display_name": "Again"}, headers=admin)
        assert dup.status_code == 409
        assert dup.json()["error"] == f"Tier '{tier['id']}' already exists"

        updated = client.patch(f"/v1/admin/tiers/{tier['id']}", json={"is_active": False, "price_monthly": 39},
                               headers=admin).json()["tier"]
        assert updated["is_active"] is False
        assert updated["price_monthly"] == 39
        assert tier["id"] not in [t["id"] for t in client.get("/v1/billing/tiers").json()["tiers"]]
        assert tier["id"] in [t["id"] for t in client.get("/v1/admin/tiers", headers=admin).json()["tiers"]]

        assert client.delete(f"/v1/admin/tiers/{tier['id']}", headers=admin).status_code == 200
        assert client.delete(f"/v1/admin/tiers/{tier['id']}", headers=admin).status_code == 404
        assert client.patch(f"/v1/admin/tiers/{tier['id']}", json={"sort_order": 1}, headers=admin).status_code == 404

    def test_delete_tier_in_use(self, client, make_user):
        admin, _ = make_user(admin_role="admin")
        name = _tier_name()
        tier = client.post("/v1/admin/tiers", json={"name": name, "display_name": name}, headers=admin).json()["tier"]
        make_user(tier=tier["id"])

        r = client.delete(f"/v1/admin/tiers/{tier['id']}", headers=admin)
        assert r.status_code == 409
        assert r.json()["error"] == "Cannot delete a tier with 1 subscribed user(s). Deactivate it instead."

    def test_admin_only(self, client, user_headers):
        assert client.get("/v1/admin/tiers", headers=user_headers).status_code == 403
        r = client.post("/v1/admin/tiers", json={"name": "x", "display_name": "x"}, headers=user_headers)
        assert r.status_code == 403
        assert r.json()["error"] == "Admin access required"
