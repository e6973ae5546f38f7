from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..app import db
from ..models import Award, Badge, Person
from ..shared.awards import AwardUpsert, upsert_award
from ..shared.badges import DEFAULT_BADGE_SLUG, resolve_badge_slug
from ..shared.credentials import get_badge_by_slug
from ..shared.errors import ArtifactGenerationError, NotFoundError, ValidationError
from ..shared.payloads import CompletionSignal
from ..shared.people import upsert_person
from ..shared.time import iso_utc, now_utc
from .certificates import CertificateArtifact, generate_certificate_and_upload
from .notifications import EmailStatus, notify_award
from .registry import AwardServices


@dataclass(frozen=True)
class CertificateOutcome:
    artifact: CertificateArtifact | None = None
    error: str | None = None

    @property
    def url(self) -> str | None:
        return self.artifact.public_url if self.artifact else None


@dataclass(frozen=True)
class SideEffects:
    """Outcome of the best-effort steps that run after the award commit."""

    certificate: CertificateOutcome
    email: EmailStatus


@dataclass(frozen=True)
class IngestionResult:
    badge: Badge
    person: Person
    upsert: AwardUpsert
    badge_url: str
    side_effects: SideEffects

    @property
    def award(self) -> Award:
        return self.upsert.award

    def to_response(self) -> dict:
        award_body = {
            "id": self.award.id,
            "verificationCode": self.award.verification_code,
            "issuedAt": iso_utc(self.award.issued_at),
            "personalizedDescription": self.award.personalized_description,
            "url": self.badge_url,
        }
        if self.side_effects.certificate.url:
            award_body["certificateUrl"] = self.side_effects.certificate.url
        return {
            "status": "ok",
            "badgeSlug": self.badge.slug,
            "recipientEmail": self.person.email,
            "recipientName": self.person.name,
            "award": award_body,
            "email": self.side_effects.email.to_dict(),
        }


def award_page_url(base_url: str, award_id: str) -> str:
    return f"{base_url.rstrip('/')}/awards/{award_id}"


def issue_certificate(
    services: AwardServices, award: Award, *, base_url: str | None = None
) -> CertificateOutcome:
    """Generate and store the certificate for ``award``; failures are captured."""
    try:
        artifact = generate_certificate_and_upload(
            services,
            recipient_name=award.person.name,
            issued_at=award.issued_at,
            verification_code=award.id,
            badge_title=award.badge.name,
            base_url=base_url,
        )
    except ArtifactGenerationError as exc:
        current_app.logger.warning("[CERT-FAIL] award=%s error=%s", award.id, exc)
        return CertificateOutcome(error=str(exc))
    except Exception as exc:
        current_app.logger.exception("[CERT-FAIL] award=%s", award.id)
        return CertificateOutcome(error=str(exc) or exc.__class__.__name__)
    return CertificateOutcome(artifact=artifact)


def run_side_effects(
    services: AwardServices,
    upsert: AwardUpsert,
    *,
    recipient_email: str,
    badge_url: str,
    base_url: str,
) -> SideEffects:
    award = upsert.award
    certificate = issue_certificate(services, award, base_url=base_url)
    email = notify_award(
        services,
        recipient_email=recipient_email,
        recipient_name=award.person.name,
        badge_name=award.badge.name,
        verification_code=award.id,
        badge_url=badge_url,
        description=award.personalized_description,
        certificate_url=certificate.url,
        reused=upsert.reused,
    )
    return SideEffects(certificate=certificate, email=email)


def ingest_completion(
    signal: CompletionSignal, services: AwardServices, *, base_url: str
) -> IngestionResult:
    """Record a course completion and produce its artifacts.

    Raises ValidationError, NotFoundError or PersistenceError before the
    award is committed. Everything after the commit is best-effort and
    reported in the result.
    """
    if not signal.has_badge_candidates:
        raise ValidationError("Badge could not be resolved from payload")
    slug = resolve_badge_slug(
        signal.badge_slug,
        signal.course_id,
        signal.course_name,
        default_slug=current_app.config.get("DEFAULT_BADGE_SLUG", DEFAULT_BADGE_SLUG),
    )
    badge = get_badge_by_slug(slug)
    if not badge:
        raise NotFoundError(f"Badge '{slug}' not found")

    person = upsert_person(signal.name, signal.email)
    upsert = upsert_award(
        person.id,
        badge.id,
        now_utc(),
        signal.description(),
    )
    current_app.logger.info(
        "[WEBHOOK] source=%s badge=%s person=%s award=%s reused=%s",
        signal.source,
        badge.slug,
        person.id,
        upsert.award.id,
        upsert.reused,
    )

    badge_url = award_page_url(base_url, upsert.award.id)
    side_effects = run_side_effects(
        services,
        upsert,
        recipient_email=person.email,
        badge_url=badge_url,
        base_url=base_url,
    )
    return IngestionResult(
        badge=badge,
        person=person,
        upsert=upsert,
        badge_url=badge_url,
        side_effects=side_effects,
    )


def regenerate_certificate(
    award_id: str, services: AwardServices, *, base_url: str | None = None
) -> CertificateOutcome:
    """Re-render the certificate of an existing award in place."""
    award = db.session.get(Award, award_id)
    if not award:
        raise NotFoundError(f"Award '{award_id}' not found")
    return issue_certificate(services, award, base_url=base_url)
