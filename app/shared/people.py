from __future__ import annotations

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..app import db
from ..models import Person
from .errors import PersistenceError


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def get_person_by_email(email: str) -> Person | None:
    return (
        db.session.query(Person)
        .filter(func.lower(Person.email) == normalize_email(email))
        .one_or_none()
    )


def upsert_person(name: str, email: str) -> Person:
    """Find the person for ``email`` or create them.

    The normalized email is the only identity key. An existing person keeps
    the name they were created with. A concurrent insert of the same email
    loses on the unique index and is resolved by re-reading.
    """
    email_norm = normalize_email(email)
    try:
        person = get_person_by_email(email_norm)
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceError("Failed to lookup person", details=str(exc)) from exc

    if person:
        if name and person.name != name:
            current_app.logger.info(
                "[PERSON] reused id=%s email=%s name_kept=%r payload_name=%r",
                person.id,
                email_norm,
                person.name,
                name,
            )
        else:
            current_app.logger.info("[PERSON] reused id=%s email=%s", person.id, email_norm)
        return person

    person = Person(name=name, email=email_norm)
    db.session.add(person)
    try:
        db.session.commit()
        current_app.logger.info("[PERSON] created id=%s email=%s", person.id, email_norm)
        return person
    except IntegrityError as exc:
        db.session.rollback()
        try:
            person = get_person_by_email(email_norm)
        except SQLAlchemyError as reread_exc:
            db.session.rollback()
            raise PersistenceError(
                "Failed to create person", details=str(reread_exc)
            ) from reread_exc
        if person:
            current_app.logger.info(
                "[PERSON] lost insert race; reused id=%s email=%s", person.id, email_norm
            )
            return person
        raise PersistenceError("Failed to create person", details=str(exc.orig)) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceError("Failed to create person", details=str(exc)) from exc
