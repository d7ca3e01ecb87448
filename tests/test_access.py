from __future__ import annotations

from app.models.profile import Profile
from app.services.access_service import (
    Capability,
    Outcome,
    evaluate_access,
    resolve_capability,
)
from conftest import auth, make_profile


def test_resolve_capability() -> None:
    assert resolve_capability(None) is Capability.GUEST
    assert resolve_capability(Profile(role="admin", status="active")) is Capability.ADMIN
    assert resolve_capability(Profile(role="manager", status="active")) is Capability.MANAGER
    assert resolve_capability(Profile(role="user", status="active")) is Capability.USER
    assert resolve_capability(Profile(role="admin", status="disabled")) is Capability.GUEST


def test_no_identity_redirects_to_login_with_next(db) -> None:
    d = evaluate_access(db, None, "/admin/users")
    assert d.outcome is Outcome.LOGIN
    assert d.redirect_to == "/login?next=/admin/users"


def test_user_on_admin_path_goes_home(db, guest) -> None:
    d = evaluate_access(db, guest.id, "/admin")
    assert d.outcome is Outcome.HOME
    assert d.redirect_to == "/"


def test_privileged_roles_enter_admin(db, admin) -> None:
    manager = make_profile(db, "manager@example.org", role="manager")
    assert evaluate_access(db, admin.id, "/admin/payments").outcome is Outcome.ALLOW
    assert evaluate_access(db, manager.id, "/admin").outcome is Outcome.ALLOW


def test_guest_pages_need_identity_only(db, guest) -> None:
    for path in ("/dashboard", "/book", "/payment"):
        assert evaluate_access(db, guest.id, path).outcome is Outcome.ALLOW


def test_public_paths(db) -> None:
    for path in ("/", "/login", "/register"):
        assert evaluate_access(db, None, path).outcome is Outcome.ALLOW


def test_missing_profile_fails_closed(db) -> None:
    d = evaluate_access(db, "no-such-user", "/admin")
    assert d.outcome is Outcome.HOME
    assert d.capability is Capability.GUEST


def test_lookup_error_fails_closed(db, admin, monkeypatch) -> None:
    def boom(*args, **kwargs):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(db, "get", boom)
    d = evaluate_access(db, admin.id, "/admin")
    assert d.outcome is Outcome.HOME


def test_access_endpoint(client, guest) -> None:
    r = client.get("/api/v1/access", params={"path": "/admin"}, headers=auth(guest))
    assert r.json() == {"outcome": "home", "redirectTo": "/", "capability": "user"}

    r = client.get("/api/v1/access", params={"path": "/dashboard"})
    assert r.json()["outcome"] == "login"
    assert r.json()["redirectTo"] == "/login?next=/dashboard"


def test_admin_api_requires_privilege(client, guest) -> None:
    assert client.get("/api/v1/admin/stats").status_code == 401
    assert client.get("/api/v1/admin/stats", headers=auth(guest)).status_code == 403


def test_role_change_is_admin_only(client, db, guest) -> None:
    manager = make_profile(db, "manager@example.org", role="manager")
    r = client.patch(f"/api/v1/admin/users/{guest.id}/role", headers=auth(manager), json={"role": "admin"})
    assert r.status_code == 403


def test_bank_details_are_public(client) -> None:
    r = client.get("/api/v1/bank-details")
    assert r.json() == {"bank": "Jaiz Bank Nigeria", "account": "0001194315", "name": "MCAN AMAC"}
