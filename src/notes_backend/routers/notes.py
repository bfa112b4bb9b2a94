"""Notes router."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from sqlmodel.ext.asyncio.session import AsyncSession

from notes_backend.config import settings
from notes_backend.db import get_session
from notes_backend.errors import PayloadTooLarge
from notes_backend.http_headers import build_content_disposition
from notes_backend.integrations.storage.object_storage import ObjectStorage, get_object_storage
from notes_backend.models import Attachment, Note, as_utc
from notes_backend.schemas import Note as NoteSchema
from notes_backend.services import attachments_service, notes_service
from notes_backend.services.attachments_service import UploadedFile

router = APIRouter(tags=["notes"])


async def _read_upload_file_limited(*, file: UploadFile, max_bytes: int) -> bytes:
    # The form parser has already spooled the part; cap what gets loaded into memory.
    buf = bytearray()
    chunk_size = 1024 * 1024
    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        buf.extend(chunk)
        if max_bytes > 0 and len(buf) > max_bytes:
            raise PayloadTooLarge(f"attachment exceeds maximum size of {max_bytes} bytes")
    return bytes(buf)


async def _uploaded_file(file: UploadFile | None) -> UploadedFile | None:
    if file is None:
        return None
    data = await _read_upload_file_limited(
        file=file, max_bytes=int(settings.attachments_max_size_bytes)
    )
    # Browsers send an empty part when no file was picked.
    if not data and not file.filename:
        return None
    return UploadedFile(data=data, filename=file.filename, content_type=file.content_type)


def _attachment_url(note_id: str) -> str:
    return f"{settings.api_prefix.rstrip('/')}/notes/{note_id}/file"


def _to_schema(note: Note, attachment: Attachment | None) -> NoteSchema:
    out = NoteSchema(
        id=note.id,
        title=note.title,
        content=note.content,
        created_at=as_utc(note.created_at),
        updated_at=as_utc(note.updated_at),
    )
    if attachment is not None:
        out.has_file = True
        out.file_name = attachment.filename
        out.file_type = attachment.content_type
        out.file_size = attachment.size_bytes
        out.previewable = attachments_service.is_previewable(attachment.content_type)
        out.attachment_url = _attachment_url(note.id)
    return out


@router.get("/notes", response_model=list[NoteSchema])
async def list_notes(session: AsyncSession = Depends(get_session)) -> list[NoteSchema]:
    notes, attachments = await notes_service.list_notes(session=session)
    return [
        _to_schema(n, attachments.get(n.attachment_id) if n.attachment_id else None)
        for n in notes
    ]


@router.get("/notes/{note_id}", response_model=NoteSchema)
async def get_note(note_id: str, session: AsyncSession = Depends(get_session)) -> NoteSchema:
    note, attachment = await notes_service.get_note(session=session, note_id=note_id)
    return _to_schema(note, attachment)


@router.post("/notes", response_model=NoteSchema, status_code=status.HTTP_201_CREATED)
async def create_note(
    title: Annotated[str, Form()] = "",
    content: Annotated[str, Form()] = "",
    file: Annotated[UploadFile | None, File()] = None,
    session: AsyncSession = Depends(get_session),
    storage: ObjectStorage = Depends(get_object_storage),
) -> NoteSchema:
    note, attachment = await notes_service.create_note(
        session=session,
        storage=storage,
        title=title,
        content=content,
        file=await _uploaded_file(file),
    )
    return _to_schema(note, attachment)


@router.put("/notes/{note_id}", response_model=NoteSchema)
async def update_note(
    note_id: str,
    title: Annotated[str, Form()] = "",
    content: Annotated[str, Form()] = "",
    file: Annotated[UploadFile | None, File()] = None,
    # Explicit removal signal; without it a missing file keeps the current attachment.
    remove_file: Annotated[bool, Form(alias="removeFile")] = False,
    session: AsyncSession = Depends(get_session),
    storage: ObjectStorage = Depends(get_object_storage),
) -> NoteSchema:
    note, attachment = await notes_service.update_note(
        session=session,
        storage=storage,
        note_id=note_id,
        title=title,
        content=content,
        file=await _uploaded_file(file),
        keep_existing_file=not remove_file,
    )
    return _to_schema(note, attachment)


@router.delete("/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: str,
    session: AsyncSession = Depends(get_session),
    storage: ObjectStorage = Depends(get_object_storage),
) -> Response:
    await notes_service.delete_note(session=session, storage=storage, note_id=note_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/notes/{note_id}/file")
async def download_note_file(
    note_id: str,
    session: AsyncSession = Depends(get_session),
    storage: ObjectStorage = Depends(get_object_storage),
) -> Response:
    content = await notes_service.fetch_attachment(
        session=session, storage=storage, note_id=note_id
    )
    inline = attachments_service.is_previewable(content.content_type)
    headers = {
        "Content-Disposition": build_content_disposition(content.filename, inline=inline),
    }
    return Response(content=content.data, media_type=content.content_type, headers=headers)
