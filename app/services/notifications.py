from __future__ import annotations

from dataclasses import dataclass

from flask import current_app, render_template

from ..shared.errors import NotificationError
from ..shared.time import now_utc

REUSED_AWARD_REASON = "existing award reused"


@dataclass(frozen=True)
class EmailStatus:
    status: str
    reason: str | None = None

    @classmethod
    def sent(cls) -> "EmailStatus":
        return cls("sent")

    @classmethod
    def skipped(cls, reason: str) -> "EmailStatus":
        return cls("skipped", reason)

    @classmethod
    def failed(cls, reason: str) -> "EmailStatus":
        return cls("failed", reason)

    def to_dict(self) -> dict:
        body = {"status": self.status}
        if self.reason is not None:
            body["reason"] = self.reason
        return body


def default_description(badge_name: str) -> str:
    return f"Recognized for successfully completing the {badge_name} certification program."


def deliver(mailer, recipient_email: str, subject: str, text_body: str, html_body: str) -> dict:
    """Hand the message to the mailer; a rejected send raises NotificationError."""
    result = mailer.send(recipient_email, subject, text_body, html=html_body)
    if not result.get("ok"):
        raise NotificationError(
            result.get("detail") or "Email provider rejected the message",
            details={"mode": result.get("mode")},
        )
    return result


def notify_award(
    services,
    *,
    recipient_email: str,
    recipient_name: str,
    badge_name: str,
    verification_code: str,
    badge_url: str,
    description: str | None = None,
    certificate_url: str | None = None,
    reused: bool = False,
) -> EmailStatus:
    """Tell the recipient about a newly issued award.

    Never raises: delivery problems come back as a ``failed`` status.
    """
    if reused:
        return EmailStatus.skipped(REUSED_AWARD_REASON)
    if not services.mailer.is_configured():
        return EmailStatus.skipped("Email not configured (missing SMTP host, port or from address)")

    organization = current_app.config.get("ORGANIZATION_NAME", "Green Software Foundation")
    context = {
        "recipient_name": recipient_name,
        "badge_name": badge_name,
        "description": description or default_description(badge_name),
        "verification_code": verification_code,
        "badge_url": badge_url,
        "certificate_url": certificate_url,
        "organization": organization,
        "year": now_utc().year,
    }
    subject = f"Your {badge_name} badge from {organization}"
    try:
        html_body = render_template("email/award_notification.html", **context)
        text_body = render_template("email/award_notification.txt", **context)
        deliver(services.mailer, recipient_email, subject, text_body, html_body)
    except NotificationError as exc:
        current_app.logger.warning(
            "[MAIL-FAIL] award=%s to=%s detail=%s", verification_code, recipient_email, exc.message
        )
        return EmailStatus.failed(exc.message)
    except Exception as exc:
        current_app.logger.exception(
            "[MAIL-FAIL] award=%s to=%s", verification_code, recipient_email
        )
        return EmailStatus.failed(str(exc) or "Unknown error sending email")
    return EmailStatus.sent()
