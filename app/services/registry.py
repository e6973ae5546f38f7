from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType
from typing import Any

from flask import Flask, current_app

from .. import emailer
from ..shared.storage import LocalObjectStorage
from .rendering import PlaywrightRenderer


@dataclass
class AwardServices:
    """Client handles the issuance pipeline talks to.

    Built once per application and passed explicitly into the pipeline.
    ``renderer`` needs ``render(html) -> bytes``; ``mailer`` needs
    ``is_configured()`` and ``send(to, subject, body, html=None)``.
    """

    storage: LocalObjectStorage
    renderer: Any
    mailer: ModuleType | Any


def build_services(app: Flask) -> AwardServices:
    return AwardServices(
        storage=LocalObjectStorage(
            app.config["SITE_ROOT"], app.config.get("PUBLIC_BASE_URL", "")
        ),
        renderer=PlaywrightRenderer(
            app.static_folder, timeout_ms=int(app.config["CERTIFICATE_RENDER_TIMEOUT_MS"])
        ),
        mailer=emailer,
    )


def get_services() -> AwardServices:
    return current_app.extensions["awards"]
