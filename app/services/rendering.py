from __future__ import annotations

import os

from flask import current_app
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from ..shared.errors import RenderError, RenderTimeoutError

PAGE_WIDTH_PX = 1200
PAGE_HEIGHT_PX = 675

MIME_TYPES = {
    ".svg": "image/svg+xml",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
    ".css": "text/css",
    ".woff2": "font/woff2",
}


def mime_type_for(filename: str) -> str:
    ext = os.path.splitext(filename.lower())[1]
    return MIME_TYPES.get(ext, "application/octet-stream")


class PlaywrightRenderer:
    """Rasterize a self-contained HTML document to a one-page PDF.

    A fresh headless Chromium is launched per call and always closed.
    Requests for ``/assets/`` made by the page (e.g. CSS ``url()``) are
    answered from ``asset_dir``.
    """

    def __init__(self, asset_dir: str, timeout_ms: int = 30000):
        self.asset_dir = asset_dir
        self.timeout_ms = timeout_ms

    def _serve_local_asset(self, route) -> None:
        url = route.request.url
        marker = url.find("/assets/")
        if marker == -1:
            route.continue_()
            return
        relative = url[marker + 1 :].split("?", 1)[0]
        path = os.path.realpath(os.path.join(self.asset_dir, relative))
        root = os.path.realpath(self.asset_dir)
        if not path.startswith(f"{root}{os.sep}") or not os.path.isfile(path):
            route.continue_()
            return
        with open(path, "rb") as handle:
            route.fulfill(status=200, content_type=mime_type_for(path), body=handle.read())

    def render(self, html: str) -> bytes:
        try:
            with sync_playwright() as pw:
                browser = pw.chromium.launch(
                    headless=True,
                    args=["--no-sandbox", "--disable-setuid-sandbox"],
                    timeout=self.timeout_ms,
                )
                try:
                    page = browser.new_page(
                        viewport={"width": PAGE_WIDTH_PX, "height": PAGE_HEIGHT_PX}
                    )
                    page.set_default_timeout(self.timeout_ms)
                    page.route("**/*", self._serve_local_asset)
                    page.set_content(html, wait_until="networkidle", timeout=self.timeout_ms)
                    page.emulate_media(media="screen")
                    return page.pdf(
                        print_background=True,
                        width=f"{PAGE_WIDTH_PX}px",
                        height=f"{PAGE_HEIGHT_PX}px",
                        margin={"top": "0px", "right": "0px", "bottom": "0px", "left": "0px"},
                        page_ranges="1",
                        prefer_css_page_size=True,
                    )
                finally:
                    browser.close()
        except PlaywrightTimeoutError as exc:
            current_app.logger.warning(
                "[CERT] render timed out after %sms", self.timeout_ms
            )
            raise RenderTimeoutError(
                f"Certificate rendering exceeded {self.timeout_ms}ms"
            ) from exc
        except PlaywrightError as exc:
            raise RenderError(f"Headless rendering failed: {exc}") from exc
