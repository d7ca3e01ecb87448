"""Receipt object storage: local filesystem by default, Google Cloud Storage when configured."""
from __future__ import annotations

import logging
import os
from urllib.parse import quote

from app.core.config import settings
from app.core.errors import StorageError

logger = logging.getLogger(__name__)


class ReceiptStorage:
    backend = "base"

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        raise NotImplementedError

    def public_url(self, path: str) -> str:
        raise NotImplementedError

    def remove(self, paths: list[str]) -> None:
        """Delete objects. Missing objects are ignored."""
        raise NotImplementedError


class LocalReceiptStorage(ReceiptStorage):
    backend = "local"

    def __init__(self, root: str | None = None, public_base_url: str | None = None):
        self.root = os.path.abspath(root or settings.RECEIPT_LOCAL_DIR or "./data/receipts")
        self.public_base_url = (public_base_url if public_base_url is not None else settings.RECEIPT_PUBLIC_BASE_URL).rstrip("/")

    def _full_path(self, path: str) -> str:
        full = os.path.abspath(os.path.join(self.root, path))
        if not full.startswith(self.root + os.sep):
            raise ValueError("object path escapes storage root")
        return full

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        full = self._full_path(path)
        try:
            os.makedirs(os.path.dirname(full), exist_ok=True)
            # "x" refuses to overwrite an existing receipt
            with open(full, "xb") as f:
                f.write(data)
        except OSError as e:
            logger.error("local receipt write failed for %s: %s", path, e)
            raise StorageError(f"could not store receipt object {path}") from e
        return path

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url}/{quote(path)}"

    def remove(self, paths: list[str]) -> None:
        for path in paths:
            try:
                os.remove(self._full_path(path))
            except FileNotFoundError:
                pass

    def exists(self, path: str) -> bool:
        return os.path.isfile(self._full_path(path))


class GcsReceiptStorage(ReceiptStorage):
    backend = "gcs"

    def __init__(self, bucket_name: str | None = None):
        try:
            from google.cloud import storage  # type: ignore
        except Exception as e:
            raise RuntimeError("google-cloud-storage is not installed. Install the gcs extra and retry") from e
        self.bucket_name = bucket_name or settings.GCS_BUCKET_NAME
        self._bucket = storage.Client().bucket(self.bucket_name)

    def _key(self, path: str) -> str:
        return f"{settings.RECEIPTS_BUCKET}/{path}"

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        from google.api_core.exceptions import GoogleAPIError  # type: ignore

        blob = self._bucket.blob(self._key(path))
        try:
            blob.upload_from_string(data, content_type=content_type, if_generation_match=0)
        except GoogleAPIError as e:
            logger.error("gcs receipt upload failed for %s: %s", path, e)
            raise StorageError(f"could not store receipt object {path}") from e
        return path

    def public_url(self, path: str) -> str:
        return self._bucket.blob(self._key(path)).public_url

    def remove(self, paths: list[str]) -> None:
        from google.api_core.exceptions import NotFound  # type: ignore

        for path in paths:
            try:
                self._bucket.blob(self._key(path)).delete()
            except NotFound:
                pass


def get_receipt_storage() -> ReceiptStorage:
    if settings.GCS_BUCKET_NAME and settings.GOOGLE_APPLICATION_CREDENTIALS:
        return GcsReceiptStorage()
    return LocalReceiptStorage()
