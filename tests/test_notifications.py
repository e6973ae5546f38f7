import smtplib

import pytest

from app import emailer
from app.services.notifications import (
    REUSED_AWARD_REASON,
    EmailStatus,
    deliver,
    notify_award,
)
from app.shared.errors import NotificationError


def _notify(services, **overrides):
    kwargs = dict(
        recipient_email="jane@x.com",
        recipient_name="Jane Doe",
        badge_name="Green Software Practitioner",
        verification_code="abc-123",
        badge_url="https://badges.example.org/awards/abc-123",
    )
    kwargs.update(overrides)
    return notify_award(services, **kwargs)


def test_reused_award_is_skipped_before_provider_check(app, services):
    services.mailer.configured = False
    status = _notify(services, reused=True)
    assert status == EmailStatus.skipped(REUSED_AWARD_REASON)
    assert services.mailer.sent == []


def test_default_description_and_optional_certificate(app, services):
    assert _notify(services) == EmailStatus.sent()
    message = services.mailer.sent[0]
    assert (
        "Recognized for successfully completing the Green Software Practitioner "
        "certification program." in message["body"]
    )
    assert "Certificate:" not in message["body"]

    _notify(services, description="Top marks", certificate_url="https://x/cert.pdf")
    message = services.mailer.sent[1]
    assert "Top marks" in message["html"]
    assert "Certificate: https://x/cert.pdf" in message["body"]


def test_recipient_name_is_escaped_in_html(app, services):
    _notify(services, recipient_name="<script>x</script>")
    assert "<script>" not in services.mailer.sent[0]["html"]


def test_email_status_serialization():
    assert EmailStatus.sent().to_dict() == {"status": "sent"}
    assert EmailStatus.failed("boom").to_dict() == {"status": "failed", "reason": "boom"}


@pytest.mark.no_smoke
def test_emailer_stub_mode_without_config(app, caplog):
    caplog.set_level("INFO", logger="awards.mailer")
    app.config.update(SMTP_HOST=None, SMTP_PORT=None, SMTP_FROM_DEFAULT=None)
    assert emailer.is_configured() is False
    result = emailer.send("jane@x.com", "Subject", "Body")
    assert result["ok"] is False
    assert result["mode"] == "stub"
    assert any("result=stub" in message for message in caplog.messages)


@pytest.mark.no_smoke
def test_emailer_reports_smtp_errors(app, monkeypatch):
    app.config.update(SMTP_HOST="smtp.example.org", SMTP_PORT="2525", SMTP_FROM_DEFAULT="badges@example.org")

    def _refuse(host, port):
        raise smtplib.SMTPConnectError(421, "try later")

    monkeypatch.setattr(emailer.smtplib, "SMTP", _refuse)
    result = emailer.send("jane@x.com", "Subject", "Body")
    assert result["ok"] is False
    assert "try later" in result["detail"]


@pytest.mark.no_smoke
def test_emailer_sends_multipart_message(app, monkeypatch):
    app.config.update(
        SMTP_HOST="smtp.example.org",
        SMTP_PORT="2525",
        SMTP_FROM_DEFAULT="badges@example.org",
        SMTP_FROM_NAME="Badges",
    )
    sent = []

    class _Server:
        def __init__(self, host, port):
            self.host = host

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def sendmail(self, from_addr, envelope, message):
            sent.append((from_addr, envelope, message))

    monkeypatch.setattr(emailer.smtplib, "SMTP", _Server)
    result = emailer.send(" Jane@X.com ", "Hello", "plain", html="<p>html</p>")
    assert result == {"ok": True, "mode": "real", "detail": "sent"}
    from_addr, envelope, message = sent[0]
    assert from_addr == "badges@example.org"
    assert envelope == ["Jane@X.com"]
    assert "From: Badges <badges@example.org>" in message


def test_deliver_raises_when_provider_rejects(services):
    services.mailer.result = {"ok": False, "mode": "real", "detail": "domain not verified"}
    with pytest.raises(NotificationError) as exc:
        deliver(services.mailer, "jane@x.com", "Subject", "text", "<p>html</p>")
    assert exc.value.message == "domain not verified"
    assert exc.value.details == {"mode": "real"}


def test_rejected_send_is_failed_status(app, services, caplog):
    caplog.set_level("WARNING")
    services.mailer.result = {"ok": False}
    status = _notify(services)
    assert status == EmailStatus.failed("Email provider rejected the message")
    assert "[MAIL-FAIL]" in caplog.text


@pytest.mark.no_smoke
def test_emailer_closes_connection_when_login_fails(app, monkeypatch):
    app.config.update(
        SMTP_HOST="smtp.example.org",
        SMTP_PORT="587",
        SMTP_USER="user",
        SMTP_PASS="secret",
        SMTP_FROM_DEFAULT="badges@example.org",
    )
    servers = []

    class _Server:
        def __init__(self, host, port):
            self.closed = False
            self.tls = False
            servers.append(self)

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            self.closed = True
            return False

        def starttls(self):
            self.tls = True

        def login(self, user, password):
            raise smtplib.SMTPAuthenticationError(535, "bad credentials")

        def sendmail(self, from_addr, envelope, message):
            raise AssertionError("sendmail must not run after a failed login")

    monkeypatch.setattr(emailer.smtplib, "SMTP", _Server)
    result = emailer.send("jane@x.com", "Subject", "Body")
    assert result["ok"] is False
    assert "bad credentials" in result["detail"]
    assert servers[0].tls is True
    assert servers[0].closed is True
