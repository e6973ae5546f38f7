import os

import pytest

from app.shared.storage import LocalObjectStorage


def test_upload_overwrites_and_builds_public_url(tmp_path):
    storage = LocalObjectStorage(str(tmp_path), "https://cdn.example.org/")
    storage.ensure_bucket("certificates")
    storage.upload("certificates", "awards/a.pdf", b"one")
    storage.upload("certificates", "awards/a.pdf", b"two")
    assert storage.download("certificates", "awards/a.pdf") == b"two"
    assert storage.public_url("certificates", "awards/a.pdf") == (
        "https://cdn.example.org/storage/certificates/awards/a.pdf"
    )
    assert storage.public_url("certificates", "/awards/a.pdf", base_url="http://h/") == (
        "http://h/storage/certificates/awards/a.pdf"
    )
    assert oct(os.stat(tmp_path / "certificates" / "awards" / "a.pdf").st_mode)[-3:] == "644"


def test_missing_object_and_escaping_keys(tmp_path):
    storage = LocalObjectStorage(str(tmp_path))
    assert storage.download("certificates", "awards/none.pdf") is None
    assert storage.exists("certificates", "awards/none.pdf") is False
    with pytest.raises(ValueError):
        storage.upload("certificates", "../../etc/passwd", b"x")


def test_storage_route_serves_without_caching(app, client, services):
    services.storage.upload("certificates", "awards/a.pdf", b"%PDF-1.4 test")
    resp = client.get("/storage/certificates/awards/a.pdf")
    assert resp.status_code == 200
    assert resp.data == b"%PDF-1.4 test"
    assert resp.headers["Cache-Control"] == "max-age=0"
    assert resp.mimetype == "application/pdf"
    assert client.get("/storage/certificates/awards/missing.pdf").status_code == 404
    assert client.get("/storage/certificates/../secret").status_code == 404
