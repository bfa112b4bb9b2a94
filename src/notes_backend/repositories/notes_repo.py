from __future__ import annotations

from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from notes_backend.models import Attachment, Note


async def get_note(session: AsyncSession, *, note_id: str) -> Note | None:
    return await session.get(Note, note_id)


async def list_notes(session: AsyncSession) -> list[Note]:
    # Most recently updated first; id breaks ties so equal timestamps stay stable.
    stmt = select(Note).order_by(col(Note.updated_at).desc(), col(Note.id).asc())
    return list((await session.exec(stmt)).all())


async def get_attachments_by_id(
    session: AsyncSession, *, attachment_ids: list[str]
) -> dict[str, Attachment]:
    if not attachment_ids:
        return {}
    stmt = select(Attachment).where(col(Attachment.id).in_(attachment_ids))
    return {a.id: a for a in (await session.exec(stmt)).all()}
