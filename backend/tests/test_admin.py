"""
Admin panel: overview, user management, admin roles and audit trail.
"""
import uuid


class TestOverview:

    def test_overview_counts(self, client, make_user, avatar):
        admin, _ = make_user(admin_role="analyst")
        overview = client.get("/v1/admin/overview", headers=admin).json()["overview"]
        assert overview["total_users"] >= 2
        assert overview["total_avatars"] >= 1
        assert set(overview) >= {"active_users_7d", "active_users_30d", "total_images", "total_videos", "mrr"}

    def test_non_admin_forbidden(self, client, user_headers):
        r = client.get("/v1/admin/overview", headers=user_headers)
        assert r.status_code == 403
        assert r.json()["error"] == "Admin access required"

    def test_anonymous(self, client):
        assert client.get("/v1/admin/overview").status_code == 401


class TestUsers:

    def test_search_and_details(self, client, make_user):
        admin, _ = make_user(admin_role="support")
        name = f"Findme {uuid.uuid4().hex[:6]}"
        headers, user = make_user(name=name)
        client.post("/v1/avatars", json={"name": "Luna"}, headers=headers)

        found = client.get("/v1/admin/users", params={"search": name}, headers=admin).json()["users"]
        assert [u["id"] for u in found] == [user["id"]]
        assert found[0]["avatar_count"] == 1
        assert "password_hash" not in found[0]

        details = client.get(f"/v1/admin/users/{user['id']}", headers=admin).json()
        assert details["user"]["email"] == user["email"]
        assert details["counts"]["avatars"] == 1
        assert details["counts"]["images"] == 0
        assert details["tier"]["id"] == "pro"

        assert client.get("/v1/admin/users/missing", headers=admin).status_code == 404

    def test_ban_revokes_sessions(self, client, make_user):
        admin, _ = make_user(admin_role="moderator")
        headers, user = make_user()
        r = client.patch(f"/v1/admin/users/{user['id']}/status",
                         json={"account_status": "banned", "reason": "spam"}, headers=admin)
        assert r.status_code == 200, r.text
        assert r.json()["user"]["account_status"] == "banned"
        assert client.get("/v1/auth/me", headers=headers).status_code == 401

        login = client.post("/v1/auth/login", json={"email": user["email"], "password": "secret123"})
        assert login.status_code == 403
        assert login.json()["error"] == "Account is banned: spam"

        client.patch(f"/v1/admin/users/{user['id']}/status", json={"account_status": "active"}, headers=admin)
        assert client.post("/v1/auth/login", json={"email": user["email"], "password": "secret123"}).status_code == 200

    def test_status_validation(self, client, make_user):
        admin, admin_user = make_user(admin_role="admin")
        _, user = make_user()
        r = client.patch(f"/v1/admin/users/{user['id']}/status", json={"account_status": "paused"}, headers=admin)
        assert r.status_code == 400
        assert r.json()["error"].startswith("Invalid account status")

        r = client.patch(f"/v1/admin/users/{admin_user['id']}/status", json={"account_status": "suspended"}, headers=admin)
        assert r.status_code == 400
        assert r.json()["error"] == "You cannot change your own account status"

    def test_change_tier(self, client, make_user):
        admin, _ = make_user(admin_role="admin")
        headers, user = make_user(tier="free")
        r = client.patch(f"/v1/admin/users/{user['id']}/tier", json={"tier_id": "enterprise"}, headers=admin)
        assert r.json()["user"]["subscription_tier_id"] == "enterprise"
        assert client.get("/v1/billing/subscription", headers=headers).json()["usage"]["max_avatars"] == 100

        assert client.patch(f"/v1/admin/users/{user['id']}/tier", json={"tier_id": "gold"}, headers=admin).status_code == 404


class TestAdminRoles:

    def test_grant_and_revoke(self, client, make_user):
        owner, _ = make_user(admin_role="super_admin")
        headers, user = make_user()
        assert client.get("/v1/admin/overview", headers=headers).status_code == 403

        r = client.post("/v1/admin/admins", json={"user_id": user["id"], "role": "moderator"}, headers=owner)
        assert r.status_code == 200, r.text
        assert {"user_id": user["id"], "role": "moderator"}.items() <= next(
            a for a in r.json()["admins"] if a["user_id"] == user["id"]
        ).items()
        assert client.get("/v1/admin/overview", headers=headers).status_code == 200

        assert client.delete(f"/v1/admin/admins/{user['id']}", headers=owner).status_code == 200
        assert client.get("/v1/admin/overview", headers=headers).status_code == 403
        assert client.delete(f"/v1/admin/admins/{user['id']}", headers=owner).status_code == 404

    def test_super_admin_only(self, client, make_user):
        admin, _ = make_user(admin_role="admin")
        _, user = make_user()
        r = client.post("/v1/admin/admins", json={"user_id": user["id"]}, headers=admin)
        assert r.status_code == 403
        assert r.json()["error"] == "Super admin access required"

    def test_invalid_role_and_self_revoke(self, client, make_user):
        owner, owner_user = make_user(admin_role="super_admin")
        _, user = make_user()
        r = client.post("/v1/admin/admins", json={"user_id": user["id"], "role": "root"}, headers=owner)
        assert r.status_code == 400

        r = client.delete(f"/v1/admin/admins/{owner_user['id']}", headers=owner)
        assert r.status_code == 400
        assert r.json()["error"] == "You cannot revoke your own admin role"


class TestAuditLog:

    def test_mutations_are_audited(self, client, make_user):
        admin, admin_user = make_user(admin_role="admin")
        _, user = make_user()
        client.patch(f"/v1/admin/users/{user['id']}/status",
                     json={"account_status": "suspended", "reason": "review"}, headers=admin)
        client.patch(f"/v1/admin/users/{user['id']}/tier", json={"tier_id": "starter"}, headers=admin)

        logs = client.get("/v1/admin/audit-logs?limit=2", headers=admin).json()["logs"]
        assert [l["action"] for l in logs] == ["user.tier", "user.status"]
        assert all(l["admin_id"] == admin_user["id"] and l["target_id"] == user["id"] for l in logs)
        assert logs[0]["details"] == {"from": "pro", "to": "starter"}
        assert logs[1]["details"] == {"account_status": "suspended", "reason": "review"}
