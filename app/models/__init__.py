from __future__ import annotations

import uuid

from sqlalchemy.orm import validates

from ..app import db


def _new_award_id() -> str:
    return str(uuid.uuid4())


class Badge(db.Model):
    __tablename__ = "badges"

    id = db.Column(db.Integer, primary_key=True)
    slug = db.Column(db.String(120), nullable=False, unique=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    long_description = db.Column(db.Text)
    badge_label = db.Column(db.String(120))
    hero_description = db.Column(db.Text)
    about_paragraphs = db.Column(db.JSON)
    what_youll_learn = db.Column(db.JSON)
    duration = db.Column(db.String(120))
    cost = db.Column(db.String(120))
    earning_criteria = db.Column(db.JSON)
    template = db.Column(db.String(255))
    primary_cta_text = db.Column(db.String(255))
    primary_cta_url = db.Column(db.String(1024))
    secondary_cta_text = db.Column(db.String(255))
    secondary_cta_url = db.Column(db.String(1024))
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    awards = db.relationship("Award", back_populates="badge")


class Person(db.Model):
    __tablename__ = "people"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    __table_args__ = (
        db.Index("ix_people_email_lower", db.func.lower(email), unique=True),
    )

    awards = db.relationship("Award", back_populates="person")

    @validates("email")
    def normalize_email(self, key, value):  # pragma: no cover - simple normalizer
        return (value or "").strip().lower()


class Award(db.Model):
    __tablename__ = "awards"

    id = db.Column(db.String(36), primary_key=True, default=_new_award_id)
    person_id = db.Column(
        db.Integer, db.ForeignKey("people.id", ondelete="CASCADE"), nullable=False
    )
    badge_id = db.Column(
        db.Integer, db.ForeignKey("badges.id", ondelete="CASCADE"), nullable=False
    )
    issued_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    personalized_description = db.Column(db.Text)
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    __table_args__ = (
        db.UniqueConstraint("person_id", "badge_id", name="uq_awards_person_badge"),
    )

    person = db.relationship("Person", back_populates="awards")
    badge = db.relationship("Badge", back_populates="awards")

    @property
    def verification_code(self) -> str:
        return self.id
