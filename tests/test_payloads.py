import pytest

from app.shared.payloads import CompletionSignal, PayloadRejected, classify_payload


def _db_change(**record_overrides):
    record = {
        "course_id": "gsp",
        "course_name": None,
        "user_email": "Jane@X.com",
        "user_name": "Jane Doe",
    }
    record.update(record_overrides)
    if record["course_name"] is None:
        record.pop("course_name")
    return {
        "type": "INSERT",
        "table": "course_completions",
        "schema": "public",
        "record": record,
        "old_record": None,
    }


def test_database_change_shape_is_detected():
    signal = classify_payload(
        _db_change(metadata={"personalizedDescription": "Top of the class"})
    )
    assert isinstance(signal, CompletionSignal)
    assert signal.source == "database_change"
    assert signal.name == "Jane Doe"
    assert signal.course_id == "gsp"
    assert signal.badge_slug is None
    assert signal.description() == "Top of the class"


def test_database_change_without_old_record_key():
    payload = _db_change()
    payload.pop("old_record")
    assert isinstance(classify_payload(payload), CompletionSignal)


def test_direct_shape_is_detected():
    signal = classify_payload(
        {
            "name": "Jane Doe",
            "email": "jane@x.com",
            "badgeSlug": "green-software-practitioner",
            "personalizedDescription": "Well done",
        }
    )
    assert isinstance(signal, CompletionSignal)
    assert signal.source == "direct"
    assert signal.badge_slug == "green-software-practitioner"
    assert signal.description() == "Well done"


def test_course_name_overrides_description():
    signal = classify_payload(
        {
            "name": "Jane",
            "email": "jane@x.com",
            "courseName": "Green Software for Practitioners",
            "personalizedDescription": "ignored",
        }
    )
    assert signal.description() == (
        "Recognized for successfully completing the Green Software for Practitioners "
        "certification program."
    )


def test_broken_database_change_falls_back_to_direct_rules():
    payload = _db_change(user_email="not-an-email")
    rejected = classify_payload(payload)
    assert isinstance(rejected, PayloadRejected)
    assert "name" in rejected.details["fieldErrors"]
    assert "email" in rejected.details["fieldErrors"]


def test_missing_email_reports_field_error():
    rejected = classify_payload({"name": "Jane Doe", "courseId": "gsp"})
    assert isinstance(rejected, PayloadRejected)
    assert list(rejected.details["fieldErrors"]) == ["email"]


@pytest.mark.parametrize("body", [[], "text", 3])
def test_non_object_body_rejected(body):
    rejected = classify_payload(body)
    assert isinstance(rejected, PayloadRejected)
    assert rejected.details["formErrors"]


def test_has_badge_candidates():
    signal = classify_payload({"name": "Jane", "email": "jane@x.com"})
    assert isinstance(signal, CompletionSignal)
    assert signal.has_badge_candidates is False
