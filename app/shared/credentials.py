from __future__ import annotations

from dataclasses import asdict, dataclass, field

from sqlalchemy.exc import SQLAlchemyError

from ..app import db
from ..models import Badge
from .errors import PersistenceError


@dataclass(frozen=True)
class Credential:
    slug: str
    title: str
    short_description: str | None = None
    long_description: str | None = None
    badge_label: str | None = None
    hero_description: str | None = None
    about_paragraphs: list[str] = field(default_factory=list)
    what_youll_learn: list[str] = field(default_factory=list)
    duration: str | None = None
    cost: str | None = None
    earning_criteria: list[str] = field(default_factory=list)
    primary_cta_text: str | None = None
    primary_cta_url: str | None = None
    secondary_cta_text: str | None = None
    secondary_cta_url: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def credential_from_badge(badge: Badge) -> Credential:
    return Credential(
        slug=badge.slug,
        title=badge.name,
        short_description=badge.description,
        long_description=badge.long_description,
        badge_label=badge.badge_label,
        hero_description=badge.hero_description,
        about_paragraphs=list(badge.about_paragraphs or []),
        what_youll_learn=list(badge.what_youll_learn or []),
        duration=badge.duration,
        cost=badge.cost,
        earning_criteria=list(badge.earning_criteria or []),
        primary_cta_text=badge.primary_cta_text,
        primary_cta_url=badge.primary_cta_url,
        secondary_cta_text=badge.secondary_cta_text,
        secondary_cta_url=badge.secondary_cta_url,
    )


def get_badge_by_slug(slug: str) -> Badge | None:
    try:
        return db.session.query(Badge).filter_by(slug=slug).one_or_none()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceError("Failed to lookup badge", details=str(exc)) from exc


def get_credentials() -> list[Credential]:
    try:
        badges = db.session.query(Badge).order_by(Badge.name).all()
    except SQLAlchemyError as exc:
        raise PersistenceError("Failed to fetch credentials", details=str(exc)) from exc
    return [credential_from_badge(b) for b in badges]


def get_credential_by_slug(slug: str) -> Credential | None:
    badge = get_badge_by_slug(slug)
    return credential_from_badge(badge) if badge else None
