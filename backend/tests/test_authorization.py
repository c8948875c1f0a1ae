"""
Authentication and authorization tests for IronPress.

Verifies:
- Unauthenticated requests return 401
- Login rules for unapproved / deactivated stores and users
- Session revocation (logout, idle timeout, store deactivation)
- Role checks: employees cannot run admin-only operations (403)
"""

from datetime import timedelta

import pytest

from ironpress.errors import AuthenticationError
from ironpress.models import SessionToken, Store
from ironpress.services import auth_service, session_service, store_service
from ironpress.services.auth_service import PasswordValidationError
from ironpress.time_utils import utcnow

from conftest import PASSWORD, auth_headers


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("POST", "/api/auth/logout"),
            ("PUT", "/api/auth/profile"),
            ("PUT", "/api/auth/change-password"),
            ("GET", "/api/users"),
            ("GET", "/api/stores"),
            ("GET", "/api/categories"),
            ("POST", "/api/categories"),
            ("GET", "/api/customers"),
            ("GET", "/api/bills"),
            ("POST", "/api/bills"),
            ("GET", "/api/bills/dashboard"),
            ("GET", "/api/notifications/history"),
            ("POST", "/api/notifications/bills/some-bill/send"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token_rejected(self, client, db_session):
        resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401


# =============================================================================
# LOGIN
# =============================================================================


class TestLogin:
    def test_login_returns_token_user_and_store(self, client, admin_a, store_a):
        resp = client.post("/api/auth/login", json={"email": "ADMIN@sparkle.test", "password": PASSWORD})

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["token"]
        assert body["user"]["role"] == "ADMIN"
        assert body["store"]["id"] == store_a.id
        assert "password_hash" not in body["user"]

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.status_code == 200
        assert me.get_json()["user"]["email"] == "admin@sparkle.test"

    def test_wrong_password(self, client, admin_a):
        resp = client.post("/api/auth/login", json={"email": "admin@sparkle.test", "password": "Wrong123!"})

        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Invalid email or password"

    def test_missing_fields(self, client, db_session):
        resp = client.post("/api/auth/login", json={"email": "admin@sparkle.test"})
        assert resp.status_code == 400

    def test_unapproved_store_cannot_log_in(self, db_session, admin_a, store_a):
        store_a.is_approved = False
        db_session.commit()

        with pytest.raises(AuthenticationError) as exc:
            auth_service.authenticate("admin@sparkle.test", PASSWORD)
        assert exc.value.message == "Store is pending approval"

    def test_deactivated_store_reports_reason(self, db_session, admin_a, store_a):
        store_service.toggle_store_status(store_a.id, reason="Unpaid subscription")

        with pytest.raises(AuthenticationError) as exc:
            auth_service.authenticate("admin@sparkle.test", PASSWORD)
        assert exc.value.message == "Store is deactivated"
        assert exc.value.details == {"reason": "Unpaid subscription"}

    def test_deactivated_user_cannot_log_in(self, db_session, admin_a):
        admin_a.is_active = False
        db_session.commit()

        with pytest.raises(AuthenticationError) as exc:
            auth_service.authenticate("admin@sparkle.test", PASSWORD)
        assert exc.value.message == "Account is deactivated"

    def test_super_admin_needs_no_store(self, db_session, super_admin):
        user = auth_service.authenticate("root@ironpress.test", PASSWORD)
        assert user.is_super_admin
        assert user.last_login_at is not None


class TestPasswords:
    @pytest.mark.parametrize("password", ["short1!", "alllower123!", "ALLUPPER123!", "NoDigits!!", "NoSpecial123"])
    def test_weak_passwords_rejected(self, db_session, store_a, password):
        with pytest.raises(PasswordValidationError):
            auth_service.create_user(
                name="Weak", email="weak@sparkle.test", password=password, role="EMPLOYEE", store_id=store_a.id
            )

    def test_hash_is_not_plaintext(self, app):
        hashed = auth_service.hash_password(PASSWORD)
        assert hashed != PASSWORD
        assert auth_service.verify_password(PASSWORD, hashed)
        assert not auth_service.verify_password("Other123!", hashed)


# =============================================================================
# SESSIONS
# =============================================================================


class TestSessions:
    def test_logout_revokes_token(self, client, admin_a_headers):
        assert client.post("/api/auth/logout", headers=admin_a_headers).status_code == 200
        assert client.get("/api/auth/me", headers=admin_a_headers).status_code == 401

    def test_idle_session_is_revoked(self, db_session, admin_a):
        session, token = session_service.create_session(admin_a.id)
        session.last_used_at = utcnow() - timedelta(hours=3)
        db_session.commit()

        assert session_service.validate_session(token) is None
        db_session.refresh(session)
        assert session.is_revoked
        assert session.revoked_reason == "Idle timeout"

    def test_expired_session_rejected(self, db_session, admin_a):
        session, token = session_service.create_session(admin_a.id)
        session.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()

        assert session_service.validate_session(token) is None

    def test_session_carries_store_context(self, db_session, admin_a, store_a):
        _, token = session_service.create_session(admin_a.id)

        context = session_service.validate_session(token)
        assert context.store_id == store_a.id
        assert context.user.id == admin_a.id

    def test_store_deactivation_revokes_sessions(self, client, db_session, store_a, admin_a_headers):
        store_service.toggle_store_status(store_a.id, reason="Closed for renovation")

        assert client.get("/api/auth/me", headers=admin_a_headers).status_code == 401
        active = db_session.query(SessionToken).filter_by(store_id=store_a.id, is_revoked=False).count()
        assert active == 0

    def test_only_token_hash_is_stored(self, db_session, admin_a):
        _, token = session_service.create_session(admin_a.id)

        stored = db_session.query(SessionToken).filter_by(user_id=admin_a.id).one()
        assert stored.token_hash != token
        assert stored.token_hash == session_service.hash_token(token)


# =============================================================================
# PROFILE AND PASSWORD
# =============================================================================


class TestProfile:
    def test_me_returns_user_and_store(self, client, admin_a_headers, store_a):
        body = client.get("/api/auth/me", headers=admin_a_headers).get_json()

        assert body["user"]["email"] == "admin@sparkle.test"
        assert body["store"]["id"] == store_a.id

    def test_update_name(self, client, admin_a_headers):
        resp = client.put("/api/auth/profile", json={"name": "  Asha  "}, headers=admin_a_headers)

        assert resp.status_code == 200
        assert resp.get_json()["user"]["name"] == "Asha"

    def test_blank_name_rejected(self, client, admin_a_headers):
        assert client.put("/api/auth/profile", json={"name": " "}, headers=admin_a_headers).status_code == 400

    def test_change_password_keeps_current_session_only(self, client, db_session, admin_a, admin_a_headers):
        other_headers = auth_headers(admin_a)

        resp = client.put(
            "/api/auth/change-password",
            json={"current_password": PASSWORD, "new_password": "NewPassword456!"},
            headers=admin_a_headers,
        )

        assert resp.status_code == 200
        assert resp.get_json()["sessions_revoked"] == 1
        assert client.get("/api/auth/me", headers=admin_a_headers).status_code == 200
        assert client.get("/api/auth/me", headers=other_headers).status_code == 401
        with pytest.raises(AuthenticationError):
            auth_service.authenticate("admin@sparkle.test", PASSWORD)
        assert auth_service.authenticate("admin@sparkle.test", "NewPassword456!").id == admin_a.id

    def test_wrong_current_password(self, client, admin_a_headers):
        resp = client.put(
            "/api/auth/change-password",
            json={"current_password": "Nope123!", "new_password": "NewPassword456!"},
            headers=admin_a_headers,
        )

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Current password is incorrect"

    def test_weak_new_password_keeps_old_one(self, client, db_session, admin_a, admin_a_headers):
        resp = client.put(
            "/api/auth/change-password",
            json={"current_password": PASSWORD, "new_password": "weak"},
            headers=admin_a_headers,
        )

        assert resp.status_code == 400
        assert auth_service.authenticate("admin@sparkle.test", PASSWORD).id == admin_a.id


# =============================================================================
# ROLES (403)
# =============================================================================


class TestRoles:
    def test_employee_can_create_bills(self, client, employee_a_headers, shirt_a, bill_payload):
        resp = client.post("/api/bills", json=bill_payload((shirt_a, 1)), headers=employee_a_headers)
        assert resp.status_code == 201

    def test_employee_cannot_delete_bill(self, client, employee_a_headers, shirt_a, bill_payload):
        created = client.post("/api/bills", json=bill_payload((shirt_a, 1)), headers=employee_a_headers)
        bill_id = created.get_json()["bill"]["id"]

        resp = client.delete(f"/api/bills/{bill_id}", headers=employee_a_headers)
        assert resp.status_code == 403

    def test_employee_cannot_manage_categories(self, client, employee_a_headers):
        resp = client.post("/api/categories", json={"name": "Curtain", "price": "40"}, headers=employee_a_headers)
        assert resp.status_code == 403

    def test_employee_cannot_read_settings(self, client, employee_a_headers, store_a):
        resp = client.get(f"/api/stores/{store_a.id}/settings", headers=employee_a_headers)
        assert resp.status_code == 403

    def test_store_admin_cannot_approve_stores(self, client, admin_a_headers, store_b):
        resp = client.post(f"/api/stores/{store_b.id}/approve", headers=admin_a_headers)
        assert resp.status_code == 403

    def test_store_admin_cannot_list_stores(self, client, admin_a_headers):
        assert client.get("/api/stores", headers=admin_a_headers).status_code == 403

    def test_super_admin_lists_stores(self, client, super_admin_headers, store_a, store_b):
        resp = client.get("/api/stores", headers=super_admin_headers)

        assert resp.status_code == 200
        assert {s["id"] for s in resp.get_json()["stores"]} == {store_a.id, store_b.id}

    def test_unapproved_store_session_is_rejected(self, client, db_session, store_a, admin_a_headers):
        db_session.get(Store, store_a.id).is_approved = False
        db_session.commit()

        assert client.get("/api/auth/me", headers=admin_a_headers).status_code == 401
