from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from notes_backend.config import settings
from notes_backend.errors import InvalidArgument, NotFound, StorageFailure
from notes_backend.integrations.storage.object_storage import ObjectStorage
from notes_backend.models import Attachment, Note, as_utc, utc_now
from notes_backend.note_locks import lock_for_note
from notes_backend.repositories import attachments_repo, notes_repo
from notes_backend.services import attachments_service
from notes_backend.services.attachments_service import AttachmentContent, UploadedFile

logger = logging.getLogger(__name__)


def _clean_title(title: str | None) -> str:
    v = (title or "").strip()
    if not v:
        raise InvalidArgument("title must not be empty")
    max_len = settings.note_title_max_length
    if len(v) > max_len:
        raise InvalidArgument(f"title must be at most {max_len} characters")
    return v


def _clean_content(content: str | None) -> str:
    v = content or ""
    max_len = settings.note_content_max_length
    if len(v) > max_len:
        raise InvalidArgument(f"content must be at most {max_len} characters")
    return v


def _next_updated_at(previous: datetime) -> datetime:
    # Strictly increasing per note, even if the wall clock stalls or steps back.
    now = utc_now()
    prev = as_utc(previous)
    if now > prev:
        return now
    return prev + timedelta(microseconds=1)


async def _rollback_quietly(session: AsyncSession) -> None:
    try:
        await session.rollback()
    except SQLAlchemyError:
        logger.warning("rollback failed", exc_info=True)


async def _free_attachment(
    *, session: AsyncSession, storage: ObjectStorage, attachment_id: str
) -> None:
    # Cascade path: the note no longer references it, so failure only leaks an orphan.
    try:
        await attachments_service.delete_attachment(
            session=session, storage=storage, attachment_id=attachment_id, missing_ok=True
        )
    except StorageFailure:
        logger.warning("orphaned attachment left behind attachment_id=%s", attachment_id)


async def list_notes(*, session: AsyncSession) -> tuple[list[Note], dict[str, Attachment]]:
    notes = await notes_repo.list_notes(session)
    attachment_ids = [n.attachment_id for n in notes if n.attachment_id]
    attachments = await notes_repo.get_attachments_by_id(session, attachment_ids=attachment_ids)
    return notes, attachments


async def get_note(*, session: AsyncSession, note_id: str) -> tuple[Note, Attachment | None]:
    note = await notes_repo.get_note(session, note_id=note_id)
    if note is None:
        raise NotFound("note not found")

    attachment: Attachment | None = None
    if note.attachment_id:
        attachment = await attachments_repo.get_attachment(
            session, attachment_id=note.attachment_id
        )
    return note, attachment


async def create_note(
    *,
    session: AsyncSession,
    storage: ObjectStorage,
    title: str,
    content: str,
    file: UploadedFile | None,
) -> tuple[Note, Attachment | None]:
    final_title = _clean_title(title)
    final_content = _clean_content(content)
    if file is not None:
        attachments_service.validate_attachment_size(len(file.data))

    now = utc_now()
    note = Note(
        id=str(uuid.uuid4()),
        title=final_title,
        content=final_content,
        created_at=now,
        updated_at=now,
    )

    attachment: Attachment | None = None
    try:
        if file is not None:
            attachment = await attachments_service.put_attachment(
                session=session,
                storage=storage,
                data=file.data,
                filename=file.filename,
                content_type=file.content_type,
            )
            note.attachment_id = attachment.id

        session.add(note)
        await session.commit()
    except SQLAlchemyError as exc:
        await _rollback_quietly(session)
        if attachment is not None:
            await attachments_service.discard_blob(
                storage=storage, storage_key=attachment.storage_key
            )
        logger.error("note create failed note_id=%s", note.id, exc_info=exc)
        raise StorageFailure() from exc
    except Exception:
        await _rollback_quietly(session)
        if attachment is not None:
            await attachments_service.discard_blob(
                storage=storage, storage_key=attachment.storage_key
            )
        raise

    logger.info("note created note_id=%s has_file=%s", note.id, attachment is not None)
    return note, attachment


async def update_note(
    *,
    session: AsyncSession,
    storage: ObjectStorage,
    note_id: str,
    title: str,
    content: str,
    file: UploadedFile | None,
    keep_existing_file: bool,
) -> tuple[Note, Attachment | None]:
    """Replace title/content and apply one of three attachment outcomes.

    - `file` given: store it, point the note at it, free the previous one.
    - no `file`, `keep_existing_file`: attachment reference untouched.
    - no `file`, not `keep_existing_file`: free the attachment, clear the reference.
    """
    async with lock_for_note(note_id):
        note = await notes_repo.get_note(session, note_id=note_id)
        if note is None:
            raise NotFound("note not found")

        final_title = _clean_title(title)
        final_content = _clean_content(content)
        if file is not None:
            attachments_service.validate_attachment_size(len(file.data))

        previous_attachment_id = note.attachment_id
        new_attachment: Attachment | None = None
        try:
            if file is not None:
                new_attachment = await attachments_service.put_attachment(
                    session=session,
                    storage=storage,
                    data=file.data,
                    filename=file.filename,
                    content_type=file.content_type,
                )
                note.attachment_id = new_attachment.id
            elif not keep_existing_file:
                note.attachment_id = None

            note.title = final_title
            note.content = final_content
            note.updated_at = _next_updated_at(note.updated_at)
            session.add(note)
            await session.commit()
        except SQLAlchemyError as exc:
            await _rollback_quietly(session)
            if new_attachment is not None:
                await attachments_service.discard_blob(
                    storage=storage, storage_key=new_attachment.storage_key
                )
            logger.error("note update failed note_id=%s", note_id, exc_info=exc)
            raise StorageFailure() from exc
        except Exception:
            await _rollback_quietly(session)
            if new_attachment is not None:
                await attachments_service.discard_blob(
                    storage=storage, storage_key=new_attachment.storage_key
                )
            raise

        attachment = new_attachment
        if attachment is None and note.attachment_id:
            attachment = await attachments_repo.get_attachment(
                session, attachment_id=note.attachment_id
            )

        # The update is committed; a rollback during cleanup must not expire what we return.
        session.expunge(note)
        if attachment is not None:
            session.expunge(attachment)

        # Freed only after the note stopped pointing at it.
        if previous_attachment_id and previous_attachment_id != note.attachment_id:
            await _free_attachment(
                session=session, storage=storage, attachment_id=previous_attachment_id
            )

    logger.info("note updated note_id=%s has_file=%s", note_id, attachment is not None)
    return note, attachment


async def delete_note(*, session: AsyncSession, storage: ObjectStorage, note_id: str) -> None:
    async with lock_for_note(note_id):
        note = await notes_repo.get_note(session, note_id=note_id)
        if note is None:
            raise NotFound("note not found")

        attachment_id = note.attachment_id
        try:
            await session.delete(note)
            await session.commit()
        except SQLAlchemyError as exc:
            await _rollback_quietly(session)
            logger.error("note delete failed note_id=%s", note_id, exc_info=exc)
            raise StorageFailure() from exc

        if attachment_id:
            await _free_attachment(session=session, storage=storage, attachment_id=attachment_id)

    logger.info("note deleted note_id=%s", note_id)


async def fetch_attachment(
    *, session: AsyncSession, storage: ObjectStorage, note_id: str
) -> AttachmentContent:
    note = await notes_repo.get_note(session, note_id=note_id)
    if note is None:
        raise NotFound("note not found")
    if not note.attachment_id:
        raise NotFound("note has no attachment")

    return await attachments_service.get_attachment_content(
        session=session, storage=storage, attachment_id=note.attachment_id
    )
