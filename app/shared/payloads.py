"""Inbound course-completion payload shapes.

Two shapes are accepted. The database-change notification (a row insert
forwarded by the datastore's webhook) is tried first because it is the
more structured one; the direct call shape is the fallback.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic import ValidationError as SchemaValidationError

from .badges import normalize_label


class DirectPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    email: EmailStr
    badge_slug: Optional[str] = Field(default=None, alias="badgeSlug")
    course_id: Optional[str] = Field(default=None, alias="courseId")
    course_name: Optional[str] = Field(default=None, alias="courseName")
    personalized_description: Optional[str] = Field(
        default=None, alias="personalizedDescription"
    )


class CompletionRecord(BaseModel):
    course_id: str
    course_name: Optional[str] = None
    user_email: EmailStr
    user_name: str
    metadata: Optional[dict[str, Any]] = None


class DatabaseChangePayload(BaseModel):
    type: str
    table: str
    schema_: str = Field(alias="schema")
    record: CompletionRecord
    old_record: Any = None


@dataclass(frozen=True)
class CompletionSignal:
    """A completion event normalized from either payload shape."""

    source: Literal["database_change", "direct"]
    name: str
    email: str
    badge_slug: str | None = None
    course_id: str | None = None
    course_name: str | None = None
    personalized_description: str | None = None

    def description(self) -> str | None:
        # A course name always yields the standard recognition line.
        if self.course_name:
            return (
                f"Recognized for successfully completing the {self.course_name} "
                "certification program."
            )
        return self.personalized_description

    @property
    def has_badge_candidates(self) -> bool:
        return any(
            normalize_label(v) for v in (self.badge_slug, self.course_id, self.course_name)
        )


@dataclass(frozen=True)
class PayloadRejected:
    message: str
    details: dict


PayloadClassification = Union[CompletionSignal, PayloadRejected]


def flatten_errors(exc: SchemaValidationError) -> dict:
    form_errors: list[str] = []
    field_errors: dict[str, list[str]] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        if not loc:
            form_errors.append(error["msg"])
            continue
        field_errors.setdefault(".".join(loc), []).append(error["msg"])
    return {"formErrors": form_errors, "fieldErrors": field_errors}


def _from_database_change(payload: DatabaseChangePayload) -> CompletionSignal:
    record = payload.record
    description = None
    if record.metadata:
        raw = record.metadata.get("personalizedDescription")
        description = raw if isinstance(raw, str) else None
    return CompletionSignal(
        source="database_change",
        name=record.user_name,
        email=record.user_email,
        course_id=record.course_id,
        course_name=record.course_name,
        personalized_description=description,
    )


def _from_direct(payload: DirectPayload) -> CompletionSignal:
    return CompletionSignal(
        source="direct",
        name=payload.name,
        email=payload.email,
        badge_slug=payload.badge_slug,
        course_id=payload.course_id,
        course_name=payload.course_name,
        personalized_description=payload.personalized_description,
    )


def classify_payload(data: Any) -> PayloadClassification:
    """Detect the payload shape structurally and normalize it."""
    if not isinstance(data, dict):
        return PayloadRejected(
            message="Invalid payload - expected a JSON object",
            details={"formErrors": ["Expected object"], "fieldErrors": {}},
        )
    try:
        return _from_database_change(DatabaseChangePayload.model_validate(data))
    except SchemaValidationError:
        pass
    try:
        return _from_direct(DirectPayload.model_validate(data))
    except SchemaValidationError as exc:
        return PayloadRejected(
            message="Invalid payload - must be either database webhook or direct API format",
            details=flatten_errors(exc),
        )
