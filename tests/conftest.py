import os
import pathlib
import sys
from io import BytesIO

import pytest
from PyPDF2 import PdfWriter

PROJECT_ROOT = pathlib.Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from app.app import create_app, db, seed_badges
from app.services.registry import AwardServices
from app.shared.storage import LocalObjectStorage

PUBLIC_BASE_URL = "https://badges.example.org"


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "slow" in item.keywords or "quarantine" in item.keywords:
            continue
        item.add_marker("full")
        if "no_smoke" in item.keywords:
            continue
        item.add_marker("smoke")


def make_pdf(pages: int = 1) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=900, height=506.25)
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


class FakeRenderer:
    def __init__(self, pages: int = 1):
        self.pages = pages
        self.calls: list[str] = []
        self.error: Exception | None = None

    def render(self, html: str) -> bytes:
        self.calls.append(html)
        if self.error:
            raise self.error
        return make_pdf(self.pages)


class RecordingMailer:
    def __init__(self, configured: bool = True, result: dict | None = None):
        self.configured = configured
        self.result = result or {"ok": True, "detail": "sent"}
        self.sent: list[dict] = []
        self.error: Exception | None = None

    def is_configured(self) -> bool:
        return self.configured

    def send(self, recipients, subject, body, html=None):
        if self.error:
            raise self.error
        self.sent.append(
            {"to": recipients, "subject": subject, "body": body, "html": html}
        )
        return self.result


@pytest.fixture
def services(tmp_path):
    return AwardServices(
        storage=LocalObjectStorage(str(tmp_path / "storage"), PUBLIC_BASE_URL),
        renderer=FakeRenderer(),
        mailer=RecordingMailer(),
    )


@pytest.fixture
def app(tmp_path, services):
    application = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "SITE_ROOT": str(tmp_path / "storage"),
            "PUBLIC_BASE_URL": PUBLIC_BASE_URL,
        }
    )
    application.extensions["awards"] = services
    with application.app_context():
        db.create_all()
        seed_badges()
        yield application
        db.session.remove()


@pytest.fixture
def client(app):
    return app.test_client()
