from __future__ import annotations

import os
import tempfile

from .errors import UploadError


def ensure_dir(path: str) -> None:
    """Create directory if missing (mkdir -p equivalent)."""
    os.makedirs(path, exist_ok=True)


def write_atomic(path: str, data, mode: str = "wb") -> None:
    """Write data to a temporary file then atomically rename to target path."""
    dir_path = os.path.dirname(path)
    ensure_dir(dir_path)
    fd, tmp_path = tempfile.mkstemp(dir=dir_path)
    try:
        with os.fdopen(fd, mode) as f:
            f.write(data)
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)


class LocalObjectStorage:
    """Bucket/key object store on the local filesystem.

    Objects live at ``{root}/{bucket}/{key}`` and are world-readable so the
    front proxy (or the ``/storage`` route) can serve them directly.
    """

    def __init__(self, root: str, public_base_url: str = ""):
        self.root = root
        self.public_base_url = (public_base_url or "").rstrip("/")

    def _safe_path(self, bucket: str, key: str) -> str:
        bucket_root = os.path.realpath(os.path.join(self.root, bucket))
        resolved = os.path.realpath(os.path.join(bucket_root, key.lstrip("/")))
        if not resolved.startswith(f"{bucket_root}{os.sep}"):
            raise ValueError(f"object key escapes bucket: {key!r}")
        return resolved

    def path_for(self, bucket: str, key: str) -> str:
        return self._safe_path(bucket, key)

    def ensure_bucket(self, bucket: str) -> None:
        try:
            ensure_dir(os.path.join(self.root, bucket))
        except OSError as exc:
            raise UploadError(f"Failed to create bucket '{bucket}': {exc}") from exc

    def upload(self, bucket: str, key: str, data: bytes) -> str:
        """Store ``data``, replacing any existing object. Returns the key."""
        path = self._safe_path(bucket, key)
        try:
            write_atomic(path, data)
            os.chmod(path, 0o644)
        except OSError as exc:
            raise UploadError(f"Failed to upload {bucket}/{key}: {exc}") from exc
        return key

    def download(self, bucket: str, key: str) -> bytes | None:
        path = self._safe_path(bucket, key)
        if not os.path.isfile(path):
            return None
        with open(path, "rb") as handle:
            return handle.read()

    def exists(self, bucket: str, key: str) -> bool:
        return os.path.isfile(self._safe_path(bucket, key))

    def public_url(self, bucket: str, key: str, base_url: str | None = None) -> str:
        base = (base_url or self.public_base_url).rstrip("/")
        return f"{base}/storage/{bucket}/{key.lstrip('/')}"
