"""Unit tests for the SMTP notification adapter"""

import smtplib

import pytest

from domain.notifications import NotificationError
from infrastructure.email.smtp_notifier import SMTPNotifier


class FakeSMTP:
    """Stand-in for smtplib.SMTP recording the calls made on it."""

    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls = []
        self.messages = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, username, password):
        self.calls.append(("login", username))

    def send_message(self, msg):
        self.messages.append(msg)


class RefusingSMTP(FakeSMTP):
    def send_message(self, msg):
        raise smtplib.SMTPRecipientsRefused({})


@pytest.fixture(autouse=True)
def reset_instances():
    FakeSMTP.instances = []


class TestSMTPNotifier:

    def test_disabled_without_host(self, monkeypatch):
        monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
        notifier = SMTPNotifier(host="")
        assert notifier.enabled is False
        notifier.send(["a@test.com"], "Subject", "Body")
        assert FakeSMTP.instances == []

    def test_sends_message(self, monkeypatch):
        monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
        notifier = SMTPNotifier(host="smtp.test", port=2525, username="mailer", password="secret",
                                sender="no-reply@notaryflow.test")
        notifier.send(["a@test.com", "b@test.com"], "Request received", "Hello")

        [smtp] = FakeSMTP.instances
        assert (smtp.host, smtp.port) == ("smtp.test", 2525)
        assert smtp.calls == ["starttls", ("login", "mailer")]
        [msg] = smtp.messages
        assert msg["Subject"] == "Request received"
        assert msg["To"] == "a@test.com, b@test.com"
        assert msg["From"] == "no-reply@notaryflow.test"

    def test_skips_tls_and_login_when_not_configured(self, monkeypatch):
        monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
        SMTPNotifier(host="smtp.test", use_tls=False).send(["a@test.com"], "S", "B")
        assert FakeSMTP.instances[0].calls == []

    def test_empty_recipients_is_noop(self, monkeypatch):
        monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
        SMTPNotifier(host="smtp.test").send([None, ""], "S", "B")
        assert FakeSMTP.instances == []

    def test_delivery_failure_raises_notification_error(self, monkeypatch):
        monkeypatch.setattr(smtplib, "SMTP", RefusingSMTP)
        with pytest.raises(NotificationError, match="Failed to send email"):
            SMTPNotifier(host="smtp.test").send(["a@test.com"], "S", "B")

    def test_connection_failure_raises_notification_error(self, monkeypatch):
        def refuse(*args, **kwargs):
            raise ConnectionRefusedError("no route")

        monkeypatch.setattr(smtplib, "SMTP", refuse)
        with pytest.raises(NotificationError):
            SMTPNotifier(host="smtp.test").send(["a@test.com"], "S", "B")
