"""Attachment store: blob bytes in object storage, metadata in the `attachments` table.

The store knows nothing about notes; callers reference attachments by id.
"""

from __future__ import annotations

import hashlib
import logging
import mimetypes
import uuid
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from notes_backend.config import settings
from notes_backend.errors import NotFound, PayloadTooLarge, StorageFailure
from notes_backend.integrations.storage.object_storage import (
    STORAGE_ERRORS,
    ObjectStorage,
    build_attachment_storage_key,
)
from notes_backend.models import Attachment
from notes_backend.repositories import attachments_repo

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class UploadedFile:
    data: bytes
    filename: str | None
    content_type: str | None


@dataclass(frozen=True)
class AttachmentContent:
    attachment: Attachment
    data: bytes

    @property
    def filename(self) -> str:
        return self.attachment.filename or self.attachment.id

    @property
    def content_type(self) -> str:
        return self.attachment.content_type or DEFAULT_CONTENT_TYPE


def is_previewable(content_type: str | None) -> bool:
    # image/* renders inline; everything else is offered as a download link.
    return (content_type or "").strip().lower().startswith("image/")


def resolve_content_type(filename: str | None, declared: str | None) -> str:
    declared = (declared or "").strip()
    if declared and declared != DEFAULT_CONTENT_TYPE:
        return declared
    guessed, _ = mimetypes.guess_type(filename or "")
    return guessed or declared or DEFAULT_CONTENT_TYPE


def validate_attachment_size(size_bytes: int) -> None:
    max_bytes = int(settings.attachments_max_size_bytes)
    if max_bytes > 0 and size_bytes > max_bytes:
        raise PayloadTooLarge(f"attachment exceeds maximum size of {max_bytes} bytes")


async def put_attachment(
    *,
    session: AsyncSession,
    storage: ObjectStorage,
    data: bytes,
    filename: str | None,
    content_type: str | None,
) -> Attachment:
    """Store the bytes, then stage the metadata row in the caller's transaction.

    The blob is written first so a committed row always has content behind it.
    If the caller's commit fails it must call `discard_blob` to drop the orphan.
    """
    validate_attachment_size(len(data))

    attachment_id = str(uuid.uuid4())
    storage_key = build_attachment_storage_key(attachment_id=attachment_id)
    resolved_type = resolve_content_type(filename, content_type)

    attachment = Attachment(
        id=attachment_id,
        storage_key=storage_key,
        filename=(filename or "")[:255] or None,
        content_type=resolved_type[:255],
        size_bytes=len(data),
        sha256_hex=hashlib.sha256(data).hexdigest(),
    )

    try:
        await storage.put_bytes(storage_key, data, content_type=resolved_type)
    except STORAGE_ERRORS as exc:
        logger.error("attachment write failed attachment_id=%s", attachment_id, exc_info=exc)
        await discard_blob(storage=storage, storage_key=storage_key)
        raise StorageFailure() from exc

    try:
        session.add(attachment)
        await session.flush()
    except SQLAlchemyError as exc:
        logger.error("attachment metadata write failed attachment_id=%s", attachment_id, exc_info=exc)
        await discard_blob(storage=storage, storage_key=storage_key)
        raise StorageFailure() from exc

    return attachment


async def get_attachment_content(
    *, session: AsyncSession, storage: ObjectStorage, attachment_id: str
) -> AttachmentContent:
    attachment = await attachments_repo.get_attachment(session, attachment_id=attachment_id)
    if attachment is None:
        raise NotFound("attachment not found")

    try:
        data = await storage.get_bytes(attachment.storage_key)
    except FileNotFoundError as exc:
        logger.warning("attachment content missing attachment_id=%s", attachment_id)
        raise NotFound("attachment content missing") from exc
    except STORAGE_ERRORS as exc:
        logger.error("attachment read failed attachment_id=%s", attachment_id, exc_info=exc)
        raise StorageFailure() from exc

    return AttachmentContent(attachment=attachment, data=data)


async def delete_attachment(
    *,
    session: AsyncSession,
    storage: ObjectStorage,
    attachment_id: str,
    missing_ok: bool = False,
) -> None:
    """Remove the metadata row, then the blob.

    Row first: a crash in between leaves an unreferenced blob, never a row
    without content. `missing_ok` is for cascades that free an id which may
    already be gone.
    """
    attachment = await attachments_repo.get_attachment(session, attachment_id=attachment_id)
    if attachment is None:
        if missing_ok:
            return
        raise NotFound("attachment not found")

    storage_key = attachment.storage_key
    try:
        await session.delete(attachment)
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("attachment delete failed attachment_id=%s", attachment_id, exc_info=exc)
        raise StorageFailure() from exc

    await discard_blob(storage=storage, storage_key=storage_key)


async def discard_blob(*, storage: ObjectStorage, storage_key: str) -> None:
    # Best-effort cleanup; a leftover blob is an acceptable leak.
    try:
        await storage.delete(storage_key)
    except STORAGE_ERRORS:
        logger.warning("blob cleanup failed storage_key=%s", storage_key, exc_info=True)
