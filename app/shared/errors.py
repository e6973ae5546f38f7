"""Error taxonomy for the award issuance pipeline.

Errors raised before an award is committed abort the request with their
``status_code``. Artifact and notification errors happen after the commit
and are only ever logged and reported inside a successful response.
"""

from __future__ import annotations

from typing import Any


class AwardsError(Exception):
    status_code = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(AwardsError):
    """Malformed or unrecognized payload."""

    status_code = 400


class NotFoundError(AwardsError):
    """A referenced record (badge, award) does not exist."""

    status_code = 404


class PersistenceError(AwardsError):
    """Datastore read or write failed."""

    status_code = 500


class ArtifactGenerationError(AwardsError):
    """Certificate could not be produced or stored."""


class TemplateFetchError(ArtifactGenerationError):
    pass


class TemplateIntegrityError(ArtifactGenerationError):
    def __init__(self, missing: list[str]):
        super().__init__(
            "Certificate template is missing placeholders: " + ", ".join(missing),
            details={"missing": missing},
        )
        self.missing = missing


class AssetUnavailableError(ArtifactGenerationError):
    pass


class RenderError(ArtifactGenerationError):
    pass


class RenderTimeoutError(RenderError):
    pass


class UploadError(ArtifactGenerationError):
    pass


class NotificationError(AwardsError):
    """Email delivery failed."""
