import logging
import os

from flask import Flask
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

from .models import Badge, Person, Award  # noqa: E402,F401
from .constants import DEFAULT_BADGES  # noqa: E402


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    try:
        return int(raw) if raw else default
    except ValueError:
        logging.warning("ignoring non-integer %s=%r", name, raw)
        return default


def create_app(config: dict | None = None):
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.secret_key = os.getenv("SECRET_KEY", "dev")
    app.config["PREFERRED_URL_SCHEME"] = "https"

    DB_USER = os.getenv("DB_USER", "awards")
    DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
    DB_HOST = os.getenv("DB_HOST", "db")
    DB_NAME = os.getenv("DB_NAME", "awards")
    DATABASE_URL = os.getenv(
        "DATABASE_URL",
        f"postgresql+psycopg2://{DB_USER}:{DB_PASSWORD}@{DB_HOST}/{DB_NAME}",
    )

    app.config["SQLALCHEMY_DATABASE_URI"] = DATABASE_URL
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["MAX_CONTENT_LENGTH"] = 1 * 1024 * 1024

    app.config["SITE_ROOT"] = os.getenv("SITE_ROOT", "/srv")
    app.config["PUBLIC_BASE_URL"] = os.getenv("PUBLIC_BASE_URL", "")
    app.config["ORGANIZATION_NAME"] = os.getenv(
        "ORGANIZATION_NAME", "Green Software Foundation"
    )
    app.config["DEFAULT_BADGE_SLUG"] = os.getenv(
        "DEFAULT_BADGE_SLUG", "green-software-practitioner"
    )
    app.config["CERTIFICATE_BUCKET"] = "certificates"
    app.config["CERTIFICATE_TEMPLATE_KEY"] = "templates/certificate-preview.html"
    app.config["CERTIFICATE_ASSET_BASE_URL"] = os.getenv("CERTIFICATE_ASSET_BASE_URL", "")
    app.config["CERTIFICATE_RENDER_TIMEOUT_MS"] = _env_int(
        "CERTIFICATE_RENDER_TIMEOUT_MS", 30000
    )

    app.config["SMTP_HOST"] = os.getenv("SMTP_HOST")
    app.config["SMTP_PORT"] = os.getenv("SMTP_PORT")
    app.config["SMTP_USER"] = os.getenv("SMTP_USER")
    app.config["SMTP_PASS"] = os.getenv("SMTP_PASS")
    app.config["SMTP_FROM_DEFAULT"] = os.getenv("SMTP_FROM_DEFAULT")
    app.config["SMTP_FROM_NAME"] = os.getenv("SMTP_FROM_NAME", "")

    if config:
        app.config.update(config)

    db.init_app(app)

    from .services.registry import build_services

    app.extensions["awards"] = build_services(app)

    @app.get("/health")
    def health():  # pragma: no cover - simple healthcheck
        return "OK", 200

    from .routes.webhooks import bp as webhooks_bp
    from .routes.awards import bp as awards_bp

    app.register_blueprint(webhooks_bp)
    app.register_blueprint(awards_bp)

    with app.app_context():
        if os.getenv("SEED_BADGES"):
            seed_badges_safely()

    return app


def seed_badges(definitions=DEFAULT_BADGES) -> int:
    """Insert badge definitions whose slug is not yet present."""
    existing = {slug for (slug,) in db.session.query(Badge.slug)}
    added = 0
    for definition in definitions:
        if definition["slug"] in existing:
            continue
        db.session.add(Badge(**definition))
        added += 1
    db.session.commit()
    return added


def seed_badges_safely() -> None:
    """Seed default badges if the table exists."""

    try:
        from sqlalchemy import inspect

        insp = inspect(db.engine)
        if "badges" not in insp.get_table_names():
            return

        added = seed_badges()
        logging.info("Seeded %d badges.", added)
    except Exception as exc:  # pragma: no cover
        db.session.rollback()
        logging.error("Badge seed failed: %s", exc)


app = create_app()
