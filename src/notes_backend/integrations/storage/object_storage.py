from __future__ import annotations

from typing import Protocol

from botocore.exceptions import BotoCoreError, ClientError

from notes_backend.config import settings

# Backend I/O failures the services translate into a retryable StorageFailure.
STORAGE_ERRORS: tuple[type[BaseException], ...] = (OSError, BotoCoreError, ClientError)


class ObjectStorage(Protocol):
    async def put_bytes(
        self, key: str, data: bytes, *, content_type: str | None = None
    ) -> None: ...

    async def get_bytes(self, key: str) -> bytes:
        """Raise FileNotFoundError when no object is stored under key."""
        ...

    async def delete(self, key: str) -> None:
        """Remove the object; a missing key is not an error."""
        ...


def build_attachment_storage_key(*, attachment_id: str) -> str:
    # Pinned layout: ${ATTACHMENTS_LOCAL_DIR}/{id[:2]}/{id}; the same key works for S3.
    return f"{attachment_id[:2]}/{attachment_id}"


def get_object_storage() -> ObjectStorage:
    # Default to local storage when S3 config is incomplete.
    if settings.s3_configured():
        from .s3_storage import S3ObjectStorage

        return S3ObjectStorage(
            endpoint_url=settings.s3_endpoint_url,
            region=settings.s3_region,
            bucket=settings.s3_bucket,
            access_key_id=settings.s3_access_key_id,
            secret_access_key=settings.s3_secret_access_key,
            force_path_style=settings.s3_force_path_style,
        )

    from .local_storage import LocalObjectStorage

    return LocalObjectStorage(root_dir=settings.attachments_local_dir)
