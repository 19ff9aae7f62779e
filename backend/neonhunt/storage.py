"""Photo blob storage.

Claim photos live in a blob store keyed by ``<gameCode>/<teamName>/<keywordId>/<claimId>.<ext>``.
A local folder is used by default; setting ``PHOTO_BUCKET`` switches to
Google Cloud Storage.
"""

from __future__ import annotations

import os
import re
import shutil
from typing import BinaryIO, Optional
from urllib.parse import quote

from flask import current_app

from neonhunt.errors import StorageError
from neonhunt.models import PENDING_PHOTO_PATH

DEFAULT_PHOTO_EXTENSION = "jpg"
_EXTENSION_PATTERN = re.compile(r"^[A-Za-z0-9]{1,10}$")


def photo_extension(filename: Optional[str]) -> str:
    """Return the extension of an uploaded filename.

    Falls back to ``jpg`` when the name has no extension or the extension is
    not a short alphanumeric token.
    """
    if not filename or "." not in filename:
        return DEFAULT_PHOTO_EXTENSION
    ext = filename.rsplit(".", 1)[1].strip()
    return ext if _EXTENSION_PATTERN.match(ext) else DEFAULT_PHOTO_EXTENSION


def build_photo_path(game_code: str, team_name: str, keyword_id: int, claim_id: int, filename: Optional[str]) -> str:
    return f"{game_code}/{team_name}/{keyword_id}/{claim_id}.{photo_extension(filename)}"


class LocalPhotoStorage:
    """Stores photos under a folder served by the ``/photos`` route."""

    def __init__(self, root: str, url_prefix: str = "/photos"):
        self.root = os.path.abspath(root)
        self.url_prefix = url_prefix.rstrip("/")

    def _resolve(self, path: str) -> str:
        target = os.path.abspath(os.path.join(self.root, path.lstrip("/")))
        if os.path.commonpath([self.root, target]) != self.root:
            raise StorageError(f"Invalid photo path: {path}")
        return target

    def upload(self, handle: BinaryIO, path: str, content_type: Optional[str] = None) -> str:
        target = self._resolve(path)
        try:
            os.makedirs(os.path.dirname(target), exist_ok=True)
            # 'x' refuses to overwrite an existing photo
            with open(target, "xb") as out:
                shutil.copyfileobj(handle, out)
        except FileExistsError as exc:
            raise StorageError(f"Photo already exists: {path}") from exc
        except OSError as exc:
            raise StorageError(f"Photo upload failed: {exc}") from exc
        return path

    def remove(self, path: str) -> None:
        target = self._resolve(path)
        try:
            os.remove(target)
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StorageError(f"Photo removal failed: {exc}") from exc

    def public_url(self, path: str) -> str:
        return f"{self.url_prefix}/{quote(path.lstrip('/'))}"


class GCSPhotoStorage:
    """Stores photos in a Google Cloud Storage bucket."""

    def __init__(self, bucket: str, base_url: Optional[str] = None, cache_control: Optional[str] = None):
        self.bucket_name = bucket
        self.base_url = (base_url or f"https://storage.googleapis.com/{bucket}").rstrip("/")
        self.cache_control = cache_control
        self._bucket = None

    def _get_bucket(self):
        if self._bucket is None:
            try:
                from google.cloud import storage
            except ImportError as exc:  # pragma: no cover - dependency absent in some envs
                raise StorageError(
                    "google-cloud-storage is required to store photos in GCS."
                ) from exc
            self._bucket = storage.Client().bucket(self.bucket_name)
        return self._bucket

    def upload(self, handle: BinaryIO, path: str, content_type: Optional[str] = None) -> str:
        blob = self._get_bucket().blob(path.lstrip("/"))
        if self.cache_control:
            blob.cache_control = self.cache_control
        try:
            # if_generation_match=0 refuses to overwrite an existing object
            blob.upload_from_file(handle, content_type=content_type, if_generation_match=0)
        except Exception as exc:
            raise StorageError(f"Photo upload failed: {exc}") from exc
        return path

    def remove(self, path: str) -> None:
        blob = self._get_bucket().blob(path.lstrip("/"))
        try:
            blob.delete()
        except Exception as exc:
            raise StorageError(f"Photo removal failed: {exc}") from exc

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/{quote(path.lstrip('/'))}"


def make_photo_storage(config):
    bucket = config.get("PHOTO_BUCKET")
    if bucket:
        return GCSPhotoStorage(
            bucket,
            base_url=config.get("PHOTO_BASE_URL"),
            cache_control=config.get("PHOTO_CACHE_CONTROL"),
        )
    return LocalPhotoStorage(config["PHOTO_UPLOAD_FOLDER"])


def get_photo_storage():
    return current_app.extensions["photo_storage"]


def photo_url(path: Optional[str]) -> Optional[str]:
    """Public URL for a stored photo, or None while the upload is pending."""
    if not path or path == PENDING_PHOTO_PATH:
        return None
    return get_photo_storage().public_url(path)
