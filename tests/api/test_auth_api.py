"""
Tests for signup, login and sessions.
"""

from tests.api.helpers import PASSWORD, login, signup, signup_and_login


class TestSignup:

    def test_signup_creates_account(self, client, users):
        """Signup should store a normalized username and a hashed password."""
        account = signup(client, "Juan")

        assert account["username"] == "juan"
        assert account["email"] == "juan@example.com"
        assert not account["is_admin"]

        stored = users.find_by_username("juan")
        assert stored is not None
        assert stored.password_hash != PASSWORD

    def test_missing_fields_rejected(self, client):
        """Every field is required."""
        response = client.post(
            "/api/v1/auth/signup",
            json={"username": "juan", "email": "", "password": "x"},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "All fields are required."

    def test_duplicate_username_rejected_case_insensitively(self, client):
        """"JUAN" and "juan" are the same username."""
        signup(client, "juan")

        response = client.post(
            "/api/v1/auth/signup",
            json={"username": " JUAN ", "email": "other@example.com", "password": "x"},
        )

        assert response.status_code == 409
        assert response.json()["detail"] == "Username already taken."

    def test_overlong_password_rejected(self, client):
        """Passwords bcrypt cannot hash in full should be refused at signup."""
        response = client.post(
            "/api/v1/auth/signup",
            json={"username": "juan", "email": "j@example.com", "password": "x" * 100},
        )
        assert response.status_code == 400


class TestLogin:

    def test_login_sets_session(self, client):
        """Login should start a session the next request can see."""
        signup(client, "juan")

        response = login(client, "Juan")

        assert response.status_code == 200
        assert client.get("/api/v1/auth/me").json()["username"] == "juan"

    def test_wrong_password(self, client):
        """A wrong password should get 401 with a generic message."""
        signup(client, "juan")

        response = login(client, "juan", "nope")

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid username or password."

    def test_unknown_user(self, client):
        """Unknown usernames get the same 401 as a wrong password."""
        assert login(client, "ghost").status_code == 401

    def test_banned_user_cannot_log_in(self, client, users):
        """Banned members should be refused with 403."""
        signup(client, "juan")
        user = users.find_by_username("juan")
        user.toggle_ban()
        users.save(user)

        response = login(client, "juan")

        assert response.status_code == 403
        assert response.json()["detail"] == "Your account has been banned."

    def test_logout_clears_session(self, client):
        """After logout the session should be gone."""
        signup_and_login(client, "juan")

        assert client.post("/api/v1/auth/logout").status_code == 200
        assert client.get("/api/v1/auth/me").status_code == 401

    def test_me_requires_login(self, client):
        """Anonymous requests to /me should get 401."""
        response = client.get("/api/v1/auth/me")
        assert response.status_code == 401
        assert response.json()["detail"] == "Login required."

    def test_deleted_account_loses_session(self, client, users):
        """A session for a deleted account should stop working."""
        account = signup_and_login(client, "juan")
        users.delete(account["id"])

        assert client.get("/api/v1/auth/me").status_code == 401
