# tests/v1/test_auth.py
"""Tests for the authentication endpoints."""

from fastapi import status

REGISTER_URL = "/api/v1/auth/register"
LOGIN_URL = "/api/v1/auth/login"


def _register(client, **overrides):
    payload = {
        "email": "carol@example.com",
        "username": "Carol_99",
        "password": "longenough1",
        "full_name": "Carol",
    }
    payload.update(overrides)
    return client.post(REGISTER_URL, json=payload)


class TestRegister:
    def test_register_creates_account(self, client):
        """Usernames are stored lower-case."""
        response = _register(client)

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["username"] == "carol_99"
        assert body["email"] == "carol@example.com"
        assert "password" not in body and "password_hash" not in body

    def test_new_account_can_log_in(self, client):
        _register(client)

        response = client.post(LOGIN_URL, json={"identifier": "carol_99", "password": "longenough1"})

        assert response.status_code == status.HTTP_200_OK
        profile = response.json()["profile"]
        assert profile["privacy"] == "PUBLIC"
        assert profile["role"] == "USER"

    def test_duplicate_email_conflicts(self, client, alice):
        response = _register(client, email="ALICE@example.com")

        assert response.status_code == status.HTTP_409_CONFLICT
        assert "email" in response.json()["detail"]

    def test_duplicate_username_conflicts_case_insensitively(self, client, alice):
        response = _register(client, username="ALICE")

        assert response.status_code == status.HTTP_409_CONFLICT
        assert "username" in response.json()["detail"]

    def test_username_characters_are_validated(self, client):
        assert _register(client, username="no spaces!").status_code == 422
        assert _register(client, username="ab").status_code == 422

    def test_short_password_is_rejected(self, client):
        assert _register(client, password="short").status_code == 422

    def test_invalid_email_is_rejected(self, client):
        assert _register(client, email="not-an-email").status_code == 422


class TestLogin:
    def test_login_by_username(self, client, alice, password):
        response = client.post(LOGIN_URL, json={"identifier": "alice", "password": password})

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["access_token"]
        assert body["expires_in"] > 0
        assert body["profile"]["id"] == str(alice.id)

    def test_login_by_at_handle_and_email(self, client, alice, password):
        for identifier in ("@alice", "Alice@Example.com"):
            response = client.post(LOGIN_URL, json={"identifier": identifier, "password": password})
            assert response.status_code == status.HTTP_200_OK, identifier

    def test_login_stamps_last_login(self, client, alice, password):
        assert alice.last_login is None

        client.post(LOGIN_URL, json={"identifier": "alice", "password": password})

        assert alice.last_login is not None

    def test_wrong_password_is_unauthorized(self, client, alice):
        response = client.post(LOGIN_URL, json={"identifier": "alice", "password": "nope-nope"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_unknown_user_is_unauthorized(self, client):
        response = client.post(LOGIN_URL, json={"identifier": "ghost", "password": "whatever1"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_deactivated_account_is_forbidden(self, client, make_user, password):
        make_user("sleepy", is_active=False)

        response = client.post(LOGIN_URL, json={"identifier": "sleepy", "password": password})

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert "deactivated" in response.json()["detail"]


class TestSession:
    def test_session_returns_identity(self, client, alice, alice_headers):
        response = client.get("/api/v1/auth/session", headers=alice_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "id": str(alice.id),
            "email": "alice@example.com",
            "username": "alice",
            "role": "USER",
        }

    def test_session_requires_token(self, client):
        response = client.get("/api/v1/auth/session")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.headers["www-authenticate"] == "Bearer"

    def test_logout_acknowledges(self, client, alice_headers):
        response = client.post("/api/v1/auth/logout", headers=alice_headers)

        assert response.status_code == status.HTTP_200_OK

    def test_update_last_login(self, client, alice, alice_headers):
        response = client.post("/api/v1/auth/update-last-login", headers=alice_headers)

        assert response.status_code == status.HTTP_200_OK
        assert alice.last_login is not None


class TestChangePassword:
    URL = "/api/v1/auth/change-password"

    def test_change_password(self, client, alice, alice_headers, password):
        response = client.post(
            self.URL,
            json={"current_password": password, "new_password": "brand-new-pass"},
            headers=alice_headers,
        )
        assert response.status_code == status.HTTP_200_OK

        old = client.post(LOGIN_URL, json={"identifier": "alice", "password": password})
        new = client.post(LOGIN_URL, json={"identifier": "alice", "password": "brand-new-pass"})
        assert old.status_code == status.HTTP_401_UNAUTHORIZED
        assert new.status_code == status.HTTP_200_OK

    def test_wrong_current_password(self, client, alice_headers):
        response = client.post(
            self.URL,
            json={"current_password": "not-my-password", "new_password": "brand-new-pass"},
            headers=alice_headers,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
