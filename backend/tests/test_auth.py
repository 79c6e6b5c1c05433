# Overview: Pytest coverage for login, sessions and the caller's profile.

import pytest

from webster.models import SecurityEvent, SessionToken
from webster.services.auth_service import (
    PasswordValidationError,
    UserValidationError,
    create_user,
    verify_password,
)
from webster.services import session_service
from webster.time_utils import utcnow

from conftest import PASSWORD, auth_headers, get_auth_token


class TestPasswordsAndUsers:
    """auth_service rules."""

    @pytest.mark.parametrize("password", ["Short1!", "password123!", "PASSWORD123!", "Password!!!", "Password123"])
    def test_weak_passwords_rejected(self, db_session, password):
        with pytest.raises(PasswordValidationError):
            create_user("weak@pharmacy.test", password)

    def test_email_is_normalized_and_unique(self, db_session):
        user = create_user("  Mixed@Pharmacy.Test ", PASSWORD)
        assert user.email == "mixed@pharmacy.test"
        assert verify_password(PASSWORD, user.password_hash)

        with pytest.raises(UserValidationError):
            create_user("mixed@pharmacy.test", PASSWORD)


class TestLogin:
    def test_login_returns_token(self, client, owner_a):
        resp = client.post("/api/auth/login", json={"email": owner_a.email, "password": PASSWORD})
        assert resp.status_code == 200
        assert resp.json["token"]
        assert resp.json["user"]["email"] == owner_a.email

    def test_wrong_password_is_401_and_logged(self, client, db_session, owner_a):
        resp = client.post("/api/auth/login", json={"email": owner_a.email, "password": "Wrong123!"})
        assert resp.status_code == 401

        events = db_session.query(SecurityEvent).filter_by(event_type="LOGIN_FAILED").all()
        assert len(events) == 1
        assert events[0].success is False

    def test_missing_fields_is_400(self, client, db_session):
        resp = client.post("/api/auth/login", json={"email": "x@y.z"})
        assert resp.status_code == 400

    def test_validate_and_logout(self, client, owner_a):
        token = get_auth_token(client, owner_a.email, PASSWORD)

        resp = client.post("/api/auth/validate", headers=auth_headers(token))
        assert resp.status_code == 200
        assert resp.json["user"]["id"] == owner_a.id

        resp = client.post("/api/auth/logout", headers=auth_headers(token))
        assert resp.status_code == 200

        # Revoked token no longer authenticates
        resp = client.get("/api/customers", headers=auth_headers(token))
        assert resp.status_code == 401

    def test_idle_session_is_rejected(self, db_session, owner_a):
        session, token = session_service.create_session(owner_a.id)
        session.last_used_at = utcnow() - session_service.SESSION_IDLE_TIMEOUT * 2
        db_session.commit()

        assert session_service.validate_session(token) is None
        assert db_session.get(SessionToken, session.id).is_revoked is True


class TestCurrentUser:
    def test_get_me(self, client, headers_a, owner_a):
        resp = client.get("/api/users/me", headers=headers_a)
        assert resp.status_code == 200
        assert resp.json["email"] == owner_a.email

    def test_update_me(self, client, headers_a):
        resp = client.put("/api/users/me", headers=headers_a, json={"name": "Renamed", "email": "new@pharmacy.test"})
        assert resp.status_code == 200
        assert resp.json["name"] == "Renamed"
        assert resp.json["email"] == "new@pharmacy.test"

    def test_update_me_email_taken(self, client, headers_a, owner_b):
        resp = client.put("/api/users/me", headers=headers_a, json={"name": "A", "email": owner_b.email})
        assert resp.status_code == 400
