"""Recipient normalization for outgoing award mail."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence

from email_validator import EmailNotValidError, validate_email

logger = logging.getLogger("awards.mailer")

_SPLIT_RE = re.compile(r"[;,]")


def _tokens(recipients: Sequence[str] | str | None) -> Iterable[str]:
    if recipients is None:
        return ()
    if isinstance(recipients, str):
        return _SPLIT_RE.split(recipients)
    return (str(value) for value in recipients)


def valid_address(candidate: str) -> bool:
    try:
        validate_email(candidate, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def normalize_recipients(recipients: Sequence[str] | str | None) -> tuple[list[str], str]:
    """Return (envelope, To header) with blanks, invalid and repeated addresses dropped."""
    seen: set[str] = set()
    kept: list[str] = []
    for raw in _tokens(recipients):
        candidate = (raw or "").strip()
        if not candidate or candidate.lower() in seen:
            continue
        if not valid_address(candidate):
            logger.warning("[MAIL-INVALID-RECIPIENT] token=%s", candidate)
            continue
        seen.add(candidate.lower())
        kept.append(candidate)
    return kept, ", ".join(kept)
