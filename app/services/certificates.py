from __future__ import annotations

import base64
import os
import re
from dataclasses import dataclass
from datetime import datetime
from io import BytesIO

import requests
from flask import current_app
from markupsafe import escape
from PyPDF2 import PdfReader, PdfWriter
from PyPDF2.errors import PdfReadError

from ..shared.awards import CERTIFICATE_BUCKET, certificate_key
from ..shared.errors import (
    AssetUnavailableError,
    RenderError,
    TemplateFetchError,
    TemplateIntegrityError,
)
from ..shared.time import fmt_issued_date
from .rendering import mime_type_for

TEMPLATE_FILENAME = "certificate-preview.html"
TEMPLATE_OBJECT_KEY = f"templates/{TEMPLATE_FILENAME}"

REQUIRED_PLACEHOLDERS: tuple[str, ...] = ("RECIPIENT_NAME", "ISSUED_DATE", "BADGE_TITLE")
OPTIONAL_PLACEHOLDERS: tuple[str, ...] = ("AWARDED_LINE",)

_PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Z_]+)\s*\}\}")
_ASSET_SRC_RE = re.compile(r'src="(/?)(assets/[^"]+)"')
_REMOTE_ASSET_TIMEOUT = 10


@dataclass(frozen=True)
class CertificateArtifact:
    public_url: str
    storage_path: str
    issued_date_label: str


def public_dir() -> str:
    return current_app.static_folder


def fetch_template(storage) -> str:
    """Load the certificate template: versioned object first, bundled copy second."""
    bucket = current_app.config.get("CERTIFICATE_BUCKET", CERTIFICATE_BUCKET)
    key = current_app.config.get("CERTIFICATE_TEMPLATE_KEY", TEMPLATE_OBJECT_KEY)
    try:
        data = storage.download(bucket, key) if storage is not None else None
    except OSError as exc:
        raise TemplateFetchError(f"Failed to read template object {bucket}/{key}: {exc}") from exc
    if data is not None:
        current_app.logger.info("[cert-template] using object=%s/%s", bucket, key)
        return data.decode("utf-8")

    bundled = os.path.join(public_dir(), TEMPLATE_FILENAME)
    try:
        with open(bundled, encoding="utf-8") as handle:
            html = handle.read()
    except OSError as exc:
        raise TemplateFetchError(
            f"Certificate template not found; object={bucket}/{key} bundled={bundled}"
        ) from exc
    current_app.logger.info("[cert-template] using path=%s", bundled)
    return html


def missing_placeholders(template: str) -> list[str]:
    present = set(_PLACEHOLDER_RE.findall(template))
    return [name for name in REQUIRED_PLACEHOLDERS if name not in present]


def substitute_placeholders(template: str, values: dict[str, str]) -> str:
    """Fill every ``{{NAME}}`` token in one pass with HTML-escaped values.

    Raises TemplateIntegrityError when a required token is absent. Unknown
    tokens are left as they are.
    """
    missing = missing_placeholders(template)
    if missing:
        raise TemplateIntegrityError(missing)

    def _replace(match: re.Match) -> str:
        name = match.group(1)
        if name not in values:
            return match.group(0)
        return str(escape(values[name]))

    return _PLACEHOLDER_RE.sub(_replace, template)


def inject_base_href(html: str, asset_dir: str) -> str:
    if "<base" in html:
        return html
    base_href = "file://" + os.path.abspath(asset_dir).rstrip(os.sep) + "/"
    return html.replace("<head>", f'<head><base href="{base_href}">', 1)


def _fetch_remote_asset(relative: str) -> tuple[bytes, str]:
    base_url = (current_app.config.get("CERTIFICATE_ASSET_BASE_URL") or "").rstrip("/")
    if not base_url:
        raise AssetUnavailableError(f"Certificate asset missing locally: {relative}")
    url = f"{base_url}/{relative}"
    try:
        resp = requests.get(url, timeout=_REMOTE_ASSET_TIMEOUT)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise AssetUnavailableError(f"Certificate asset unavailable: {url} ({exc})") from exc
    content_type = resp.headers.get("Content-Type", "").split(";", 1)[0].strip()
    current_app.logger.info("[CERT] fetched remote asset url=%s", url)
    return resp.content, content_type or mime_type_for(relative)


def _load_asset(asset_dir: str, relative: str) -> tuple[bytes, str]:
    root = os.path.realpath(asset_dir)
    path = os.path.realpath(os.path.join(root, relative))
    if path.startswith(f"{root}{os.sep}") and os.path.isfile(path):
        with open(path, "rb") as handle:
            return handle.read(), mime_type_for(relative)
    return _fetch_remote_asset(relative)


def inline_assets(html: str, asset_dir: str) -> str:
    """Replace ``src="assets/..."`` references with data URIs."""
    cache: dict[str, str] = {}

    def _replace(match: re.Match) -> str:
        relative = match.group(2)
        if relative not in cache:
            data, mime = _load_asset(asset_dir, relative)
            cache[relative] = f"data:{mime};base64,{base64.b64encode(data).decode()}"
        return f'src="{cache[relative]}"'

    return _ASSET_SRC_RE.sub(_replace, html)


def build_certificate_html(
    storage, *, recipient_name: str, issued_date_label: str, badge_title: str
) -> str:
    asset_dir = public_dir()
    template = fetch_template(storage)
    html = substitute_placeholders(
        inject_base_href(template, asset_dir),
        {
            "RECIPIENT_NAME": recipient_name,
            "ISSUED_DATE": issued_date_label,
            "BADGE_TITLE": badge_title.upper(),
            "AWARDED_LINE": f"Awarded to {recipient_name} on {issued_date_label}",
        },
    )
    return inline_assets(html, asset_dir)


def first_page_only(pdf_bytes: bytes) -> bytes:
    if not pdf_bytes:
        raise RenderError("Renderer returned an empty document")
    try:
        reader = PdfReader(BytesIO(pdf_bytes))
        if not reader.pages:
            raise RenderError("Renderer returned a document without pages")
        if len(reader.pages) == 1:
            return pdf_bytes
        writer = PdfWriter()
        writer.add_page(reader.pages[0])
        out = BytesIO()
        writer.write(out)
    except PdfReadError as exc:
        raise RenderError(f"Renderer returned an unreadable document: {exc}") from exc
    return out.getvalue()


def generate_certificate_pdf(
    services,
    *,
    recipient_name: str,
    issued_at: datetime | str,
    badge_title: str,
) -> tuple[bytes, str]:
    issued_date_label = fmt_issued_date(issued_at)
    html = build_certificate_html(
        services.storage,
        recipient_name=recipient_name,
        issued_date_label=issued_date_label,
        badge_title=badge_title,
    )
    return first_page_only(services.renderer.render(html)), issued_date_label


def generate_certificate_and_upload(
    services,
    *,
    recipient_name: str,
    issued_at: datetime | str,
    verification_code: str,
    badge_title: str,
    base_url: str | None = None,
) -> CertificateArtifact:
    """Render the certificate for an award and store it at a fixed key.

    The object is overwritten on every call, so regenerating for the same
    verification code always yields the same path and URL.
    """
    pdf_bytes, issued_date_label = generate_certificate_pdf(
        services,
        recipient_name=recipient_name,
        issued_at=issued_at,
        badge_title=badge_title,
    )
    bucket = current_app.config.get("CERTIFICATE_BUCKET", CERTIFICATE_BUCKET)
    storage_path = certificate_key(verification_code)
    services.storage.ensure_bucket(bucket)
    services.storage.upload(bucket, storage_path, pdf_bytes)
    public_url = services.storage.public_url(bucket, storage_path, base_url=base_url)
    current_app.logger.info(
        "[CERT] award=%s path=%s/%s bytes=%s", verification_code, bucket, storage_path, len(pdf_bytes)
    )
    return CertificateArtifact(
        public_url=public_url,
        storage_path=storage_path,
        issued_date_label=issued_date_label,
    )
