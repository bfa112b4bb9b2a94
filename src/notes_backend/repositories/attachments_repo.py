from __future__ import annotations

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from notes_backend.models import Attachment


async def get_attachment(session: AsyncSession, *, attachment_id: str) -> Attachment | None:
    return await session.get(Attachment, attachment_id)


async def count_attachments(session: AsyncSession) -> int:
    stmt = select(func.count()).select_from(Attachment)
    return int((await session.exec(stmt)).one())
