"""
Tests for the HTTP surface.
"""
import json

import pytest
from fastapi.testclient import TestClient

from auth import create_access_token
from rbac import read_audit_file


@pytest.fixture
def audit_file(tmp_path, monkeypatch):
    path = tmp_path / "audit_log.jsonl"
    monkeypatch.setenv("AUDIT_LOG_FILE", str(path))
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    return path


@pytest.fixture
def client(audit_file):
    from main import app
    with TestClient(app) as c:
        yield c


def bearer(role, affiliation=None, sub="user-1"):
    claims = {"sub": sub, "role": role}
    if affiliation:
        claims["affiliation"] = affiliation
    return {"Authorization": f"Bearer {create_access_token(claims)}"}


class TestAuthentication:

    def test_missing_token_is_401(self, client):
        assert client.get("/api/rbac/permissions").status_code == 401

    def test_garbage_token_is_401(self, client):
        response = client.get("/api/rbac/permissions", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_unknown_role_claim_is_401(self, client):
        assert client.get("/api/rbac/permissions", headers=bearer("janitor")).status_code == 401

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "ok"


class TestPermissionRoutes:

    def test_list_permissions(self, client):
        body = client.get("/api/rbac/permissions", headers=bearer("student")).json()
        assert body["total"] == len(body["permissions"])
        assert body["permissions"][0]["id"] == "system.admin"

    def test_my_permissions(self, client):
        body = client.get("/api/rbac/me/permissions", headers=bearer("teacher", "staff")).json()
        assert body["role"] == "teacher"
        assert body["affiliation"] == "staff"
        assert "inventory.manage" in body["permission_ids"]

    def test_check_by_id(self, client):
        response = client.post(
            "/api/rbac/check", json={"permission_id": "academic.grades.view"}, headers=bearer("admin"),
        )
        assert response.status_code == 200
        assert response.json()["granted"] is True

    def test_check_by_resource_action(self, client):
        body = client.post(
            "/api/rbac/check", json={"resource": "admin.users", "action": "delete"}, headers=bearer("student"),
        ).json()
        assert body["granted"] is False
        assert "insufficient" in body["reason"].lower()

    def test_check_needs_a_target(self, client):
        assert client.post("/api/rbac/check", json={}, headers=bearer("admin")).status_code == 422

    def test_check_any(self, client):
        body = client.post(
            "/api/rbac/check-any",
            json={"permission_ids": ["academic.grades.view", "admin.users.delete"]},
            headers=bearer("teacher", "vice-principal"),
        ).json()
        assert body["granted"] is True

    def test_decisions_reach_audit_file(self, audit_file):
        from main import app
        with TestClient(app) as c:
            c.post("/api/rbac/check", json={"permission_id": "content.read"}, headers=bearer("student", sub="s-7"))
        entries = read_audit_file(audit_file)
        assert entries[-1].user_id == "s-7"
        assert entries[-1].permission_ids == ("content.read",)


class TestOperatorRoutes:

    def test_validate(self, client):
        body = client.get(
            "/api/rbac/validate", params={"role": "student", "affiliation": "staff"}, headers=bearer("admin"),
        ).json()
        assert body["valid"] is False
        assert body["message"] == "Role combination is invalid"

    def test_validate_affiliation_without_role_uses_caller_role(self, client):
        body = client.get(
            "/api/rbac/validate", params={"affiliation": "principal"}, headers=bearer("teacher", "staff"),
        ).json()
        assert body["role"] == "teacher"
        assert body["affiliation"] == "principal"
        assert body["valid"] is True

        body = client.get("/api/rbac/validate", params={"affiliation": "staff"}, headers=bearer("admin")).json()
        assert body["role"] == "admin"
        assert body["affiliation"] == "staff"
        assert body["valid"] is False

    def test_validate_rejects_unknown_affiliation(self, client):
        response = client.get(
            "/api/rbac/validate", params={"role": "teacher", "affiliation": "coach"}, headers=bearer("admin"),
        )
        assert response.status_code == 422

    def test_export_download(self, client):
        response = client.get(
            "/api/rbac/export", params={"role": "teacher", "affiliation": "staff"}, headers=bearer("admin"),
        )
        assert response.status_code == 200
        assert "permission-matrix-teacher-staff.json" in response.headers["content-disposition"]
        document = json.loads(response.content)
        assert set(document) == {"teacher", "teacher-staff"}

    def test_export_requires_permission(self, client):
        response = client.get("/api/rbac/export", headers=bearer("student"))
        assert response.status_code == 403
        assert "insufficient" in response.json()["detail"].lower()

    def test_principal_may_export(self, client):
        response = client.get("/api/rbac/export", headers=bearer("teacher", "principal"))
        assert response.status_code == 200
        assert "permission-matrix-teacher-principal.json" in response.headers["content-disposition"]

    def test_audit_log_viewer(self, client):
        client.post("/api/rbac/check", json={"permission_id": "system.admin"}, headers=bearer("student"))
        body = client.get(
            "/api/rbac/audit-log", params={"role": "student", "granted": "false"}, headers=bearer("admin"),
        ).json()
        assert body["total_entries"] >= 1
        assert all(e["role"] == "student" and e["granted"] is False for e in body["entries"])

    def test_audit_log_forbidden_for_students(self, client):
        assert client.get("/api/rbac/audit-log", headers=bearer("student")).status_code == 403

    @pytest.mark.parametrize("params", [{"limit": -1}, {"hours": -1}])
    def test_audit_log_rejects_negative_bounds(self, client, params):
        response = client.get("/api/rbac/audit-log", params=params, headers=bearer("admin"))
        assert response.status_code == 422

    def test_audit_log_zero_limit_is_empty(self, client):
        client.post("/api/rbac/check", json={"permission_id": "content.read"}, headers=bearer("teacher"))
        body = client.get("/api/rbac/audit-log", params={"limit": 0}, headers=bearer("admin")).json()
        assert body["entries"] == []

    def test_export_affiliation_without_role_uses_caller_role(self, client):
        response = client.get(
            "/api/rbac/export", params={"affiliation": "vice-principal"}, headers=bearer("teacher", "principal"),
        )
        assert response.status_code == 200
        assert "permission-matrix-teacher-vice-principal.json" in response.headers["content-disposition"]
