import json
import logging
import smtplib
import sys
from email.message import EmailMessage
from typing import Sequence

from flask import current_app

from .shared.mail_utils import normalize_recipients

logger = logging.getLogger("awards.mailer")
if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    logger.addHandler(handler)
logger.setLevel(logging.INFO)


def _stringify_envelope(recipients: Sequence[str]) -> str:
    return json.dumps(list(recipients))


def smtp_settings() -> dict:
    config = current_app.config
    return {
        "host": config.get("SMTP_HOST"),
        "port": config.get("SMTP_PORT"),
        "user": config.get("SMTP_USER"),
        "password": config.get("SMTP_PASS"),
        "from_addr": config.get("SMTP_FROM_DEFAULT"),
        "from_name": config.get("SMTP_FROM_NAME") or "",
    }


def is_configured() -> bool:
    settings = smtp_settings()
    return bool(settings["host"] and settings["port"] and settings["from_addr"])


def send(
    recipients: Sequence[str] | str | None,
    subject: str,
    body: str,
    html: str | None = None,
):
    settings = smtp_settings()
    host = settings["host"]
    port = settings["port"]
    from_addr = settings["from_addr"]
    from_name = settings["from_name"]

    envelope, header = normalize_recipients(recipients)
    mode = "real"
    if not host or not port or not from_addr:
        mode = "stub"
        logger.info(
            "[MAIL-OUT] mode=%s to_header=%s envelope=%s subject=\"%s\" host=%s result=stub",
            mode,
            header,
            _stringify_envelope(envelope),
            subject,
            host,
        )
        return {"ok": False, "mode": mode, "detail": "stub: missing config"}

    if not envelope:
        logger.warning(
            "[MAIL-NO-RECIPIENTS] subject=\"%s\" host=%s", subject, host
        )
        return {"ok": False, "mode": mode, "detail": "no valid recipients"}

    msg = EmailMessage()
    msg["Subject"] = subject
    if header:
        msg["To"] = header
    msg["From"] = f"{from_name} <{from_addr}>" if from_name else from_addr
    msg.set_content(body)
    if html:
        msg.add_alternative(html, subtype="html")

    try:
        port_int = int(port)
        smtp_class = smtplib.SMTP_SSL if port_int == 465 else smtplib.SMTP
        with smtp_class(host, port_int) as server:
            if port_int == 587:
                server.starttls()
            if settings["user"] and settings["password"]:
                server.login(settings["user"], settings["password"])
            server.sendmail(from_addr, envelope, msg.as_string())
        logger.info(
            "[MAIL-OUT] mode=%s to_header=%s envelope=%s subject=\"%s\" host=%s result=sent",
            mode,
            header,
            _stringify_envelope(envelope),
            subject,
            host,
        )
        return {"ok": True, "mode": mode, "detail": "sent"}
    except (smtplib.SMTPException, OSError, ValueError) as e:
        logger.info(
            "[MAIL-OUT] mode=%s to_header=%s envelope=%s subject=\"%s\" host=%s result=%s",
            mode,
            header,
            _stringify_envelope(envelope),
            subject,
            host,
            e,
        )
        return {"ok": False, "mode": mode, "detail": str(e)}
