"""
Tests for the OTP password-reset flow.

request-otp -> validate-otp -> reset-password
"""

import re
from datetime import timedelta

from app.core.security import as_utc, utcnow
from app.models.audit_log import AuditLog
from tests.conftest import NEW_PASSWORD, PASSWORD

GENERIC_MESSAGE = "If this email exists in our system, an OTP has been sent."


def request_otp(client, email="test@example.com"):
    return client.post("/api/v1/auth/request-otp", json={"email": email})


def validate_otp(client, otp, email="test@example.com"):
    return client.post("/api/v1/auth/validate-otp", json={"email": email, "otp": otp})


def reset_password(client, reset_token, new_password=NEW_PASSWORD, email="test@example.com"):
    return client.post(
        "/api/v1/auth/reset-password",
        json={"email": email, "resetToken": reset_token, "newPassword": new_password}
    )


def wrong_code(code):
    return "000000" if code != "000000" else "111111"


class TestRequestOTP:

    def test_request_otp_sends_code(self, client, make_user, mailer, db_session):
        user = make_user()

        response = request_otp(client)

        assert response.status_code == 200
        assert response.json() == {"message": "OTP sent to your email."}

        code = mailer.last_otp("test@example.com")
        assert re.fullmatch(r"\d{6}", code)

        db_session.refresh(user)
        assert user.otp_hash and user.otp_hash != code
        assert user.otp_generated_at is not None
        assert user.otp_attempts == 0
        sent = mailer.otps[-1]
        assert sent["expires_at"] - as_utc(user.otp_generated_at) == timedelta(seconds=300)

    def test_unknown_email_gets_generic_response(self, client, mailer, db_session):
        response = request_otp(client, "ghost@example.com")

        assert response.status_code == 200
        assert response.json() == {"message": GENERIC_MESSAGE}
        assert mailer.otps == []

        entry = db_session.query(AuditLog).filter(AuditLog.email == "ghost@example.com").first()
        assert entry.action == "OTP_REQUEST_NONEXISTENT_EMAIL"
        assert entry.success is False

    def test_malformed_email_rejected(self, client):
        response = request_otp(client, "nope")

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid email format"

    def test_missing_email_rejected(self, client):
        response = client.post("/api/v1/auth/request-otp", json={})

        assert response.status_code == 400
        assert response.json()["message"] == "Email is required"

    def test_unverified_email_rejected(self, client, make_user, mailer):
        make_user(email_verified=False)

        response = request_otp(client)

        assert response.status_code == 400
        assert response.json()["message"] == "Email not verified. Please verify your email first."
        assert mailer.otps == []

    def test_locked_account_rejected(self, client, make_user):
        make_user(account_locked=True)

        response = request_otp(client)

        assert response.status_code == 400
        assert response.json()["message"] == "Account is locked. Please contact support."

    def test_new_request_clears_reset_token(self, client, make_user, mailer, db_session):
        user = make_user()
        request_otp(client)
        token = validate_otp(client, mailer.last_otp("test@example.com")).json()["metadata"]["resetToken"]

        request_otp(client)

        db_session.refresh(user)
        assert user.reset_token is None
        assert reset_password(client, token).status_code == 401

    def test_daily_limit(self, client, make_user, container):
        make_user()
        limit = container.settings.OTP_MAX_DAILY_REQUESTS

        for _ in range(limit):
            assert request_otp(client).status_code == 200

        response = request_otp(client)

        assert response.status_code == 400
        assert response.json()["message"] == "Daily OTP request limit exceeded. Please try again tomorrow."

    def test_daily_limit_applies_to_unknown_emails(self, client, container):
        for _ in range(container.settings.OTP_MAX_DAILY_REQUESTS):
            request_otp(client, "ghost@example.com")

        assert request_otp(client, "ghost@example.com").status_code == 400


class TestValidateOTP:

    def test_valid_otp_returns_reset_token(self, client, make_user, mailer, db_session):
        user = make_user()
        request_otp(client)

        response = validate_otp(client, mailer.last_otp("test@example.com"))

        assert response.status_code == 200
        reset_token = response.json()["metadata"]["resetToken"]
        assert re.fullmatch(r"[0-9a-f]{64}", reset_token)

        db_session.refresh(user)
        assert user.reset_token == reset_token
        assert user.otp_hash is None
        assert user.otp_generated_at is None
        assert user.otp_attempts == 0

    def test_otp_is_single_use(self, client, make_user, mailer):
        make_user()
        request_otp(client)
        code = mailer.last_otp("test@example.com")

        assert validate_otp(client, code).status_code == 200

        response = validate_otp(client, code)
        assert response.status_code == 400
        assert response.json()["message"] == "No OTP found. Please request a new one"

    def test_wrong_otp_counts_attempts(self, client, make_user, mailer, db_session):
        user = make_user()
        request_otp(client)
        code = mailer.last_otp("test@example.com")

        response = validate_otp(client, wrong_code(code))

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid OTP. 4 attempts remaining"
        db_session.refresh(user)
        assert user.otp_attempts == 1

    def test_lockout_after_five_failures(self, client, make_user, mailer, db_session):
        user = make_user()
        request_otp(client)
        code = mailer.last_otp("test@example.com")
        bad = wrong_code(code)

        messages = [validate_otp(client, bad).json()["message"] for _ in range(5)]

        assert messages[:4] == [
            "Invalid OTP. 4 attempts remaining",
            "Invalid OTP. 3 attempts remaining",
            "Invalid OTP. 2 attempts remaining",
            "Invalid OTP. 1 attempts remaining",
        ]
        assert messages[4] == "Too many invalid attempts. Account has been locked"

        db_session.refresh(user)
        assert user.account_locked is True

        # Even the right code no longer works
        assert validate_otp(client, code).status_code == 400
        assert request_otp(client).status_code == 400

    def test_expired_otp(self, client, make_user, mailer, db_session):
        user = make_user()
        request_otp(client)
        code = mailer.last_otp("test@example.com")

        user.otp_generated_at = utcnow() - timedelta(minutes=6)
        db_session.commit()

        response = validate_otp(client, code)

        assert response.status_code == 400
        assert response.json()["message"] == "OTP expired. Please request a new one"
        db_session.refresh(user)
        assert user.otp_hash is None

    def test_without_request(self, client, make_user):
        make_user()

        response = validate_otp(client, "123456")

        assert response.status_code == 400
        assert response.json()["message"] == "No OTP found. Please request a new one"

    def test_unknown_user(self, client):
        response = validate_otp(client, "123456", email="ghost@example.com")

        assert response.status_code == 404
        assert response.json()["message"] == "User not found"

    def test_malformed_otp(self, client, make_user):
        make_user()

        response = validate_otp(client, "12ab")

        assert response.status_code == 400
        assert response.json()["message"] == "OTP must be a 6-digit number."

    def test_failures_are_audited_with_reason(self, client, make_user, mailer, db_session):
        make_user()
        request_otp(client)
        validate_otp(client, wrong_code(mailer.last_otp("test@example.com")))

        entry = db_session.query(AuditLog).filter(AuditLog.action == "OTP_VALIDATION_FAILED").first()
        assert entry.additional_info == "Invalid OTP. 4 attempts remaining"


class TestResetPassword:

    def _reset_token(self, client, mailer):
        request_otp(client)
        response = validate_otp(client, mailer.last_otp("test@example.com"))
        return response.json()["metadata"]["resetToken"]

    def test_full_flow(self, client, make_user, mailer, db_session):
        user = make_user()
        token = self._reset_token(client, mailer)

        response = reset_password(client, token)

        assert response.status_code == 200
        assert response.json()["message"] == "Password reset successful. Please log in with your new password."
        assert mailer.password_changes == ["test@example.com"]

        db_session.refresh(user)
        assert user.reset_token is None
        assert user.reset_token_expiry is None
        assert user.password_changed_at is not None
        assert user.session_version == 1

        old = client.post("/api/v1/auth/login", json={"email": "test@example.com", "password": PASSWORD})
        new = client.post("/api/v1/auth/login", json={"email": "test@example.com", "password": NEW_PASSWORD})
        assert old.status_code == 401
        assert new.status_code == 200

    def test_token_is_single_use(self, client, make_user, mailer):
        make_user()
        token = self._reset_token(client, mailer)

        assert reset_password(client, token).status_code == 200

        response = reset_password(client, token, new_password="An0ther#Secret")
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or missing reset token"

    def test_wrong_token(self, client, make_user, mailer):
        make_user()
        self._reset_token(client, mailer)

        response = reset_password(client, "f" * 64)

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or missing reset token"

    def test_non_ascii_token_is_invalid(self, client, make_user, mailer):
        make_user()
        self._reset_token(client, mailer)

        response = reset_password(client, "é" * 40)

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or missing reset token"

    def test_short_token_rejected_before_lookup(self, client, make_user):
        make_user()

        response = reset_password(client, "short")

        assert response.status_code == 400
        assert response.json()["message"] == "Reset token must be at least 32 characters"

    def test_expired_token(self, client, make_user, mailer, db_session):
        user = make_user()
        token = self._reset_token(client, mailer)

        user.reset_token_expiry = utcnow() - timedelta(seconds=1)
        db_session.commit()

        response = reset_password(client, token)

        assert response.status_code == 401
        assert response.json()["message"] == "Reset token expired. Please request a new OTP"
        db_session.refresh(user)
        assert user.reset_token is None

    def test_same_password_rejected(self, client, make_user, mailer):
        make_user()
        token = self._reset_token(client, mailer)

        response = reset_password(client, token, new_password=PASSWORD)

        assert response.status_code == 400
        assert response.json()["message"] == "New password must be different from your current password"

    def test_weak_password_rejected(self, client, make_user, mailer):
        make_user()
        token = self._reset_token(client, mailer)

        response = reset_password(client, token, new_password="weakpass")

        assert response.status_code == 400
        assert response.json()["message"].startswith("Password validation failed:")

    def test_unknown_user(self, client):
        response = reset_password(client, "a" * 64, email="ghost@example.com")

        assert response.status_code == 404

    def test_reset_invalidates_existing_sessions(self, client, make_user, mailer, auth_headers):
        user = make_user()
        headers = auth_headers(user)
        assert client.get("/api/v1/auth/me", headers=headers).status_code == 200

        token = self._reset_token(client, mailer)
        reset_password(client, token)

        assert client.get("/api/v1/auth/me", headers=headers).status_code == 401
