from datetime import datetime, timezone

import pytest

import manage
from app.app import db
from app.models import Award, Badge, Person
from app.services.ingestion import regenerate_certificate
from app.shared.awards import certificate_key
from app.shared.errors import NotFoundError


def _award(email="jane@x.com", name="Jane Doe", issued=datetime(2025, 3, 4, tzinfo=timezone.utc)):
    badge = db.session.query(Badge).filter_by(slug="green-software-practitioner").one()
    award = Award(person=Person(name=name, email=email), badge=badge, issued_at=issued)
    db.session.add(award)
    db.session.commit()
    return award.id


def test_regenerate_overwrites_existing_certificate(app, services):
    award_id = _award()
    services.storage.upload("certificates", certificate_key(award_id), b"stale")

    outcome = regenerate_certificate(award_id, services, base_url="https://badges.example.org")

    assert outcome.error is None
    assert outcome.url == (
        f"https://badges.example.org/storage/certificates/awards/{award_id}.pdf"
    )
    assert services.storage.download("certificates", certificate_key(award_id)).startswith(b"%PDF")
    assert "Jane Doe" in services.renderer.calls[-1]
    assert db.session.query(Award).count() == 1


def test_regenerate_unknown_award_is_not_found(app, services):
    with pytest.raises(NotFoundError):
        regenerate_certificate("00000000-0000-0000-0000-000000000000", services)
    assert services.renderer.calls == []
    assert db.session.query(Award).count() == 0


def test_regenerate_reports_render_failure(app, services):
    award_id = _award()
    services.renderer.error = RuntimeError("chromium exited")
    outcome = regenerate_certificate(award_id, services)
    assert outcome.url is None
    assert outcome.error == "chromium exited"


@pytest.mark.no_smoke
def test_regen_missing_certs_dry_run_lists_only_missing(app, services):
    covered = _award("jane@x.com")
    missing = _award("sam@x.com", name="Sam Lee")
    services.storage.upload("certificates", certificate_key(covered), b"%PDF-existing")

    result = app.test_cli_runner().invoke(manage.regen_missing_certs, ["--dry-run"])

    assert result.exit_code == 0, result.output
    assert result.output.split() == [missing]
    assert services.renderer.calls == []


@pytest.mark.no_smoke
def test_regen_missing_certs_generates_without_new_awards(app, services):
    covered = _award("jane@x.com")
    missing = _award("sam@x.com", name="Sam Lee")
    services.storage.upload("certificates", certificate_key(covered), b"%PDF-existing")

    result = app.test_cli_runner().invoke(manage.regen_missing_certs, [])

    assert result.exit_code == 0, result.output
    assert "Regenerated 1 of 1 certificate(s)" in result.output
    assert services.storage.exists("certificates", certificate_key(missing))
    assert services.storage.download("certificates", certificate_key(covered)) == b"%PDF-existing"
    assert len(services.renderer.calls) == 1
    assert db.session.query(Award).count() == 2


@pytest.mark.no_smoke
def test_regen_cert_command(app, services):
    award_id = _award()
    runner = app.test_cli_runner()

    result = runner.invoke(manage.regen_cert, ["--award", award_id])
    assert result.exit_code == 0, result.output
    assert result.output.strip().endswith(f"awards/{award_id}.pdf")

    result = runner.invoke(manage.regen_cert, ["--award", "no-such-award"])
    assert result.exit_code == 1
