"""
Tests for the authenticated password change.
"""

from tests.conftest import NEW_PASSWORD, PASSWORD


def change_password(client, headers, current=PASSWORD, new=NEW_PASSWORD):
    return client.post(
        "/api/v1/auth/change-password",
        json={"currentPassword": current, "newPassword": new},
        headers=headers
    )


class TestChangePassword:

    def test_change_password_success(self, client, make_user, auth_headers, mailer, db_session):
        user = make_user()

        response = change_password(client, auth_headers(user))

        assert response.status_code == 200
        assert response.json() == {"message": "Password changed successfully!"}
        assert mailer.password_changes == ["test@example.com"]

        db_session.refresh(user)
        assert user.session_version == 1
        assert user.password_changed_at is not None

        login = client.post("/api/v1/auth/login", json={"email": "test@example.com", "password": NEW_PASSWORD})
        assert login.status_code == 200

    def test_old_tokens_stop_working(self, client, make_user, auth_headers):
        user = make_user()
        headers = auth_headers(user)

        change_password(client, headers)

        assert client.get("/api/v1/auth/me", headers=headers).status_code == 401

    def test_requires_authentication(self, client):
        response = change_password(client, headers={})

        assert response.status_code == 401

    def test_wrong_current_password(self, client, make_user, auth_headers):
        user = make_user()

        response = change_password(client, auth_headers(user), current="Wr0ng!Secret99")

        assert response.status_code == 401
        assert response.json()["message"] == "Current password is incorrect"

    def test_same_password(self, client, make_user, auth_headers):
        user = make_user()

        response = change_password(client, auth_headers(user), new=PASSWORD)

        assert response.status_code == 400
        assert response.json()["message"] == "New password must be different from your current password"

    def test_weak_new_password(self, client, make_user, auth_headers):
        user = make_user()

        response = change_password(client, auth_headers(user), new="short")

        assert response.status_code == 400
        assert response.json()["message"].startswith("Password validation failed:")

    def test_missing_current_password(self, client, make_user, auth_headers):
        user = make_user()

        response = client.post(
            "/api/v1/auth/change-password",
            json={"newPassword": NEW_PASSWORD},
            headers=auth_headers(user)
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Current password is required"
