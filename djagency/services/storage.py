"""
Object storage service.

Uploads go to Supabase Storage buckets and return the public URL of the
stored object. Paths are built by the callers through the helpers below so
every upload of a given kind lands in a predictable place.
"""
import logging
import time
from typing import Callable, Iterable, Optional

from djagency.core.config import settings
from djagency.core.errors import DomainError, ValidationError, to_domain_error
from djagency.core.supabase_client import get_supabase_admin_client

logger = logging.getLogger(__name__)


def file_extension(filename: Optional[str], default: str = "bin") -> str:
    """Lower-cased extension of a filename, without the dot."""
    if not filename or "." not in filename:
        return default
    ext = filename.rsplit(".", 1)[-1].strip().lower()
    return ext or default


def timestamp_ms() -> int:
    return int(time.time() * 1000)


def avatar_path(kind: str, owner_id: object, filename: Optional[str]) -> str:
    """dj_avatar_{id}_{ts}.{ext} / producer_avatar_{id}_{ts}.{ext}"""
    return f"{kind}_avatar_{owner_id}_{timestamp_ms()}.{file_extension(filename, 'jpg')}"


def receipt_path(event_id: object, dj_id: object, filename: Optional[str]) -> str:
    return f"payment-receipts/{event_id}/{dj_id}/{timestamp_ms()}.{file_extension(filename)}"


def payment_proof_path(payment_id: object, filename: Optional[str]) -> str:
    return f"payment-proofs/{payment_id}/{timestamp_ms()}.{file_extension(filename)}"


def media_path(dj_id: object, category: str, filename: Optional[str]) -> str:
    return f"{dj_id}/{category}/{timestamp_ms()}.{file_extension(filename)}"


class StorageService:
    """
    Thin wrapper over the Supabase storage API.

    The client factory is injectable so tests can run without a backend.
    """

    def __init__(self, client_factory: Callable[[], object] | None = None, max_bytes: int | None = None):
        self.client_factory = client_factory or get_supabase_admin_client
        self.max_bytes = max_bytes if max_bytes is not None else settings.MAX_UPLOAD_BYTES

    def _bucket(self, bucket: str):
        return self.client_factory().storage.from_(bucket)

    def upload(
        self,
        bucket: str,
        path: str,
        content: bytes,
        content_type: Optional[str] = None,
        upsert: bool = False,
    ) -> str:
        """
        Upload a file and return its public URL.

        Args:
            bucket: Storage bucket name
            path: Object path inside the bucket
            content: File bytes
            content_type: MIME type stored with the object
            upsert: Overwrite an existing object at the same path

        Returns:
            Public URL of the uploaded object
        """
        if not content:
            raise ValidationError("File is empty")
        if len(content) > self.max_bytes:
            raise ValidationError(
                f"File too large ({len(content)} bytes, max {self.max_bytes})"
            )

        file_options = {
            "content-type": content_type or "application/octet-stream",
            "upsert": "true" if upsert else "false",
        }

        try:
            bucket_api = self._bucket(bucket)
            bucket_api.upload(path, content, file_options=file_options)
            url = bucket_api.get_public_url(path)
        except Exception as e:
            error = to_domain_error(e)
            logger.error(f"Upload to {bucket}/{path} failed: {error}")
            raise error from e

        logger.info(f"Uploaded {len(content)} bytes to {bucket}/{path}")
        return url.rstrip("?")

    def remove(self, bucket: str, paths: Iterable[str]) -> None:
        """Delete objects from a bucket."""
        paths = [p for p in paths if p]
        if not paths:
            return
        try:
            self._bucket(bucket).remove(paths)
        except Exception as e:
            error = to_domain_error(e)
            logger.error(f"Removing {len(paths)} objects from {bucket} failed: {error}")
            raise error from e

    def discard(self, bucket: str, path: str) -> None:
        """Remove an object uploaded by a write that then failed; only logs on error."""
        try:
            self.remove(bucket, [path])
        except DomainError as e:
            logger.warning(f"Orphaned object left in {bucket}/{path}: {e}")


storage_service = StorageService()


def get_storage_service() -> StorageService:
    """FastAPI dependency returning the storage service."""
    return storage_service
