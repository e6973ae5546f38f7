from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import joinedload

from ..app import db
from ..models import Award
from .errors import PersistenceError
from .time import iso_utc

CERTIFICATE_BUCKET = "certificates"


def certificate_key(verification_code: str) -> str:
    return f"awards/{verification_code}.pdf"


@dataclass(frozen=True)
class AwardUpsert:
    award: Award
    reused: bool

    @property
    def award_id(self) -> str:
        return self.award.id

    @property
    def issued_at(self) -> datetime:
        return self.award.issued_at


@dataclass(frozen=True)
class AwardView:
    id: str
    recipient_name: str | None
    credential_slug: str | None
    issued_at: str | None
    personalized_description: str | None
    certificate_url: str | None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "recipientName": self.recipient_name,
            "credentialSlug": self.credential_slug,
            "issuedAt": self.issued_at,
            "personalizedDescription": self.personalized_description,
            "certificateUrl": self.certificate_url,
        }


def _find_award(person_id: int, badge_id: int) -> Award | None:
    return (
        db.session.query(Award)
        .filter_by(person_id=person_id, badge_id=badge_id)
        .one_or_none()
    )


def upsert_award(
    person_id: int,
    badge_id: int,
    issued_at: datetime,
    personalized_description: str | None = None,
) -> AwardUpsert:
    """Return the award for (person, badge), creating it on first issuance.

    A reused award is returned untouched: its issue date and description
    stay as first recorded.
    """
    try:
        existing = _find_award(person_id, badge_id)
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceError("Failed to lookup existing award", details=str(exc)) from exc
    if existing:
        current_app.logger.info(
            "[AWARD] reused id=%s person=%s badge=%s", existing.id, person_id, badge_id
        )
        return AwardUpsert(award=existing, reused=True)

    award = Award(
        person_id=person_id,
        badge_id=badge_id,
        issued_at=issued_at,
        personalized_description=personalized_description,
    )
    db.session.add(award)
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        try:
            existing = _find_award(person_id, badge_id)
        except SQLAlchemyError as reread_exc:
            db.session.rollback()
            raise PersistenceError(
                "Failed to create award", details=str(reread_exc)
            ) from reread_exc
        if existing:
            current_app.logger.info(
                "[AWARD] lost insert race; reused id=%s person=%s badge=%s",
                existing.id,
                person_id,
                badge_id,
            )
            return AwardUpsert(award=existing, reused=True)
        raise PersistenceError("Failed to create award", details=str(exc.orig)) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceError("Failed to create award", details=str(exc)) from exc

    current_app.logger.info(
        "[AWARD] created id=%s person=%s badge=%s", award.id, person_id, badge_id
    )
    return AwardUpsert(award=award, reused=False)


def _certificate_url(award_id: str, storage) -> str | None:
    if storage is None:
        services = current_app.extensions.get("awards")
        storage = services.storage if services else None
    if storage is None:
        return None
    bucket = current_app.config.get("CERTIFICATE_BUCKET", CERTIFICATE_BUCKET)
    return storage.public_url(bucket, certificate_key(award_id))


def _to_view(award: Award, storage) -> AwardView:
    return AwardView(
        id=award.id,
        recipient_name=award.person.name if award.person else None,
        credential_slug=award.badge.slug if award.badge else None,
        issued_at=iso_utc(award.issued_at),
        personalized_description=award.personalized_description,
        certificate_url=_certificate_url(award.id, storage),
    )


def _award_query():
    return db.session.query(Award).options(
        joinedload(Award.person), joinedload(Award.badge)
    )


def get_awards(storage=None) -> list[AwardView]:
    try:
        awards = _award_query().order_by(Award.issued_at.desc()).all()
    except SQLAlchemyError as exc:
        raise PersistenceError("Failed to fetch awards", details=str(exc)) from exc
    return [_to_view(award, storage) for award in awards]


def get_award_by_id(award_id: str, storage=None) -> AwardView | None:
    if not award_id or len(award_id) > 36:
        return None
    try:
        award = _award_query().filter(Award.id == award_id).one_or_none()
    except SQLAlchemyError as exc:
        raise PersistenceError("Failed to fetch award", details=str(exc)) from exc
    if not award:
        return None
    return _to_view(award, storage)
