from app.app import create_app, db, seed_badges
import click

from flask_migrate import Migrate
from flask.cli import FlaskGroup
from flask import current_app

from app.models import Award
from app.services.ingestion import regenerate_certificate
from app.services.registry import get_services
from app.shared.awards import certificate_key
from app.shared.errors import NotFoundError


migrate = Migrate()


def create_awards_app():
    app = create_app()
    migrate.init_app(app, db)
    return app


cli = FlaskGroup(create_app=create_awards_app)


@cli.command("seed_badges")
def seed_badges_command():
    """Insert the default badge definitions that are missing."""
    added = seed_badges()
    click.echo(f"Added {added} badge(s)")


@cli.command("regen_cert")
@click.option("--award", "award_id", required=True)
def regen_cert(award_id: str):
    """Regenerate the certificate of one award, overwriting the stored copy."""
    try:
        outcome = regenerate_certificate(
            award_id, get_services(), base_url=current_app.config.get("PUBLIC_BASE_URL")
        )
    except NotFoundError as exc:
        click.echo(exc.message, err=True)
        raise SystemExit(1)
    if outcome.url:
        click.echo(outcome.url)
    else:
        click.echo(f"Certificate generation failed: {outcome.error}", err=True)
        raise SystemExit(1)


@cli.command("regen_missing_certs")
@click.option("--dry-run", is_flag=True, help="List awards without a certificate only")
def regen_missing_certs(dry_run: bool):
    """Generate certificates for awards that have no stored PDF."""
    services = get_services()
    bucket = current_app.config["CERTIFICATE_BUCKET"]
    base_url = current_app.config.get("PUBLIC_BASE_URL")
    missing = [
        award_id
        for (award_id,) in db.session.query(Award.id).order_by(Award.issued_at)
        if not services.storage.exists(bucket, certificate_key(award_id))
    ]
    if dry_run:
        for award_id in missing:
            click.echo(award_id)
        return
    failed = 0
    for award_id in missing:
        outcome = regenerate_certificate(award_id, services, base_url=base_url)
        if outcome.url:
            click.echo(f"{award_id} {outcome.url}")
        else:
            failed += 1
            click.echo(f"{award_id} FAILED {outcome.error}", err=True)
    click.echo(f"Regenerated {len(missing) - failed} of {len(missing)} certificate(s)")


if __name__ == "__main__":
    cli()
