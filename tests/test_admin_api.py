"""
Platform administration routes under /admin.
"""
from conftest import add_member, auth, create_incident, create_user, make_platform_manager
from incident_desk.features.teams.models import TeamRole


class TestAccess:
    def test_status(self, world):
        r = world.client.get("/admin/status", headers=auth(world.pam))
        assert r.json() == {"is_platform_manager": True}
        r = world.client.get("/admin/status", headers=auth(world.alice))
        assert r.json() == {"is_platform_manager": False}

    def test_team_admin_is_not_platform_manager(self, world):
        r = world.client.get("/admin/teams", headers=auth(world.alice))
        assert r.status_code == 403
        assert r.json() == {"detail": "Platform manager access required", "reason": "insufficient_role"}

    def test_requires_authentication(self, world):
        r = world.client.get("/admin/users")
        assert r.status_code == 401


class TestTeams:
    def test_create_rename_delete(self, world):
        r = world.client.post("/admin/teams", json={"name": "  Support "}, headers=auth(world.pam))
        assert r.status_code == 201
        team = r.json()
        assert team["name"] == "Support"

        r = world.client.put(f"/admin/teams/{team['id']}", json={"name": "Helpdesk"}, headers=auth(world.pam))
        assert r.json()["name"] == "Helpdesk"

        r = world.client.delete(f"/admin/teams/{team['id']}", headers=auth(world.pam))
        assert r.status_code == 200
        names = [t["name"] for t in world.client.get("/admin/teams", headers=auth(world.pam)).json()]
        assert names == ["Infra", "Ops"]

    def test_blank_name(self, world):
        r = world.client.post("/admin/teams", json={"name": "   "}, headers=auth(world.pam))
        assert r.status_code == 400

    def test_cannot_delete_team_in_use(self, world):
        r = world.client.delete(f"/admin/teams/{world.ops}", headers=auth(world.pam))
        assert r.status_code == 400
        assert r.json()["detail"] == "Cannot delete team with members or incidents"

    def test_unknown_team(self, world):
        r = world.client.put("/admin/teams/missing", json={"name": "x"}, headers=auth(world.pam))
        assert r.status_code == 404


class TestMembers:
    def test_list_any_team(self, world):
        r = world.client.get(f"/admin/teams/{world.infra}/members", headers=auth(world.pam))
        assert [m["id"] for m in r.json()] == [world.ivan]

    def test_add_admin(self, world):
        r = world.client.post(
            f"/admin/teams/{world.infra}/members",
            json={"userId": world.nora, "role": "admin"},
            headers=auth(world.pam),
        )
        assert r.status_code == 201
        assert r.json()["role"] == "admin"

    def test_demote_and_remove_admin(self, world):
        r = world.client.put(
            f"/admin/teams/{world.ops}/members/{world.ada}", json={"role": "user"}, headers=auth(world.pam)
        )
        assert r.status_code == 200
        assert r.json()["role"] == "user"

        r = world.client.delete(f"/admin/teams/{world.ops}/members/{world.alice}", headers=auth(world.pam))
        assert r.status_code == 200

    def test_platform_manager_can_change_own_team_role(self, world):
        add_member(world.ops, world.pam, TeamRole.ADMIN)
        r = world.client.put(
            f"/admin/teams/{world.ops}/members/{world.pam}", json={"role": "user"}, headers=auth(world.pam)
        )
        assert r.status_code == 200

    def test_add_to_unknown_team(self, world):
        r = world.client.post("/admin/teams/missing/members", json={"userId": world.nora}, headers=auth(world.pam))
        assert r.status_code == 404


class TestManagers:
    def test_add_list_remove(self, world):
        r = world.client.post("/admin/managers", json={"userId": world.nora}, headers=auth(world.pam))
        assert r.status_code == 201

        r = world.client.get("/admin/managers", headers=auth(world.pam))
        assert {m["user_id"] for m in r.json()} == {world.pam, world.nora}

        r = world.client.delete(f"/admin/managers/{world.nora}", headers=auth(world.pam))
        assert r.status_code == 200
        r = world.client.get("/admin/status", headers=auth(world.nora))
        assert r.json()["is_platform_manager"] is False

    def test_already_manager(self, world):
        r = world.client.post("/admin/managers", json={"userId": world.pam}, headers=auth(world.pam))
        assert r.status_code == 400

    def test_unknown_user(self, world):
        r = world.client.post("/admin/managers", json={"userId": "missing"}, headers=auth(world.pam))
        assert r.status_code == 404

    def test_cannot_remove_self(self, world):
        r = world.client.delete(f"/admin/managers/{world.pam}", headers=auth(world.pam))
        assert r.status_code == 403
        assert r.json() == {"detail": "Cannot remove yourself as platform manager", "reason": "self_protection"}

    def test_remove_non_manager(self, world):
        r = world.client.delete(f"/admin/managers/{world.nora}", headers=auth(world.pam))
        assert r.status_code == 404

    def test_other_manager_can_remove(self, world):
        make_platform_manager(world.nora)
        r = world.client.delete(f"/admin/managers/{world.pam}", headers=auth(world.nora))
        assert r.status_code == 200


class TestUsers:
    def test_create_and_update(self, world):
        r = world.client.post(
            "/admin/users",
            json={"name": "Zed", "email": "zed@example.com", "password": "hunter22"},
            headers=auth(world.pam),
        )
        assert r.status_code == 201
        zed = r.json()
        assert "pwd_hash" not in zed

        r = world.client.put(f"/admin/users/{zed['id']}", json={"name": "Zedd"}, headers=auth(world.pam))
        assert r.json()["name"] == "Zedd"

        r = world.client.post("/auth/login", json={"email": "zed@example.com", "password": "hunter22"})
        assert r.status_code == 200

    def test_duplicate_email(self, world):
        r = world.client.post(
            "/admin/users",
            json={"name": "Alice 2", "email": "alice@example.com", "password": "hunter22"},
            headers=auth(world.pam),
        )
        assert r.status_code == 400
        assert r.json()["detail"] == "Email already in use"

    def test_update_to_taken_email(self, world):
        r = world.client.put(f"/admin/users/{world.nora}", json={"email": "uma@example.com"}, headers=auth(world.pam))
        assert r.status_code == 400

    def test_create_blank_name(self, world):
        r = world.client.post(
            "/admin/users",
            json={"name": "   ", "email": "zed@example.com", "password": "hunter22"},
            headers=auth(world.pam),
        )
        assert r.status_code == 400
        assert r.json()["name"] == "Name cannot be empty"
        emails = [u["email"] for u in world.client.get("/admin/users", headers=auth(world.pam)).json()]
        assert "zed@example.com" not in emails

    def test_update_blank_name(self, world):
        r = world.client.put(f"/admin/users/{world.nora}", json={"name": "  "}, headers=auth(world.pam))
        assert r.status_code == 400
        users = {u["id"]: u["name"] for u in world.client.get("/admin/users", headers=auth(world.pam)).json()}
        assert users[world.nora] == "Nora"

    def test_update_nothing(self, world):
        r = world.client.put(f"/admin/users/{world.nora}", json={}, headers=auth(world.pam))
        assert r.status_code == 400
        assert r.json()["detail"] == "No fields to update"

    def test_cannot_delete_self(self, world):
        r = world.client.delete(f"/admin/users/{world.pam}", headers=auth(world.pam))
        assert r.status_code == 403
        assert r.json()["reason"] == "self_protection"

    def test_delete_unattached_user(self, world):
        r = world.client.delete(f"/admin/users/{world.nora}", headers=auth(world.pam))
        assert r.status_code == 200
        r = world.client.delete(f"/admin/users/{world.nora}", headers=auth(world.pam))
        assert r.status_code == 404

    def test_delete_user_in_use(self, world):
        r = world.client.delete(f"/admin/users/{world.uma}", headers=auth(world.pam))
        assert r.status_code == 400

    def test_delete_user_with_incidents_only(self, world):
        loner = create_user("Loner")
        create_incident(world.ops, loner)
        r = world.client.delete(f"/admin/users/{loner}", headers=auth(world.pam))
        assert r.status_code == 400
        assert r.json()["detail"] == "Cannot delete user with team memberships or incidents"

    def test_delete_other_platform_manager(self, world):
        make_platform_manager(world.nora)
        r = world.client.delete(f"/admin/users/{world.nora}", headers=auth(world.pam))
        assert r.status_code == 200
        r = world.client.get("/admin/managers", headers=auth(world.pam))
        assert [m["user_id"] for m in r.json()] == [world.pam]
