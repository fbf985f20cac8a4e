"""
Tests for email dispatch and the email tasks.
"""

from datetime import timedelta
from unittest.mock import MagicMock

from app.core.security import utcnow
from app.services import notifications
from app.services.notifications import EmailDispatcher
from app.tasks import email_tasks


class TestEmailDispatcher:

    def test_verification_link_uses_frontend_url(self, monkeypatch, test_settings):
        queued = MagicMock(return_value=True)
        monkeypatch.setattr(notifications, "queue_task_safely", queued)
        settings = test_settings.model_copy(update={"FRONTEND_URL": "https://portfolio.example.com/"})

        assert EmailDispatcher(settings).send_verification("a@example.com", "tok123", "alice") is True

        queued.assert_called_once_with(
            email_tasks.send_verification_email_task,
            to_email="a@example.com",
            verification_link="https://portfolio.example.com/verify-email/tok123",
            user_name="alice",
        )

    def test_otp_expiry_in_minutes(self, monkeypatch, test_settings):
        queued = MagicMock(return_value=True)
        monkeypatch.setattr(notifications, "queue_task_safely", queued)

        expires_at = utcnow() + timedelta(seconds=300)

        EmailDispatcher(test_settings).send_otp("a@example.com", "123456", expires_at)

        kwargs = queued.call_args.kwargs
        assert kwargs["otp_code"] == "123456"
        assert kwargs["expires_in_minutes"] == 5

    def test_otp_expiry_never_below_one_minute(self, monkeypatch, test_settings):
        queued = MagicMock(return_value=True)
        monkeypatch.setattr(notifications, "queue_task_safely", queued)

        EmailDispatcher(test_settings).send_otp("a@example.com", "123456", utcnow())

        assert queued.call_args.kwargs["expires_in_minutes"] == 1

    def test_broker_failure_is_reported(self, monkeypatch, test_settings):
        monkeypatch.setattr(notifications, "queue_task_safely", MagicMock(return_value=False))

        assert EmailDispatcher(test_settings).send_password_changed("a@example.com") is False


class TestEmailTasks:

    def test_otp_task_sends_through_email_service(self, monkeypatch):
        service = MagicMock()
        service.send_otp_email.return_value = True
        monkeypatch.setattr(email_tasks, "get_email_service", lambda: service)

        result = email_tasks.send_otp_email_task("a@example.com", "654321", 5)

        assert result == {"status": "success", "email": "a@example.com"}
        service.send_otp_email.assert_called_once_with("a@example.com", "654321", 5)

    def test_password_changed_task(self, monkeypatch):
        service = MagicMock()
        service.send_password_changed_email.return_value = True
        monkeypatch.setattr(email_tasks, "get_email_service", lambda: service)

        result = email_tasks.send_password_changed_email_task("a@example.com")

        assert result["status"] == "success"
        service.send_password_changed_email.assert_called_once_with("a@example.com")
