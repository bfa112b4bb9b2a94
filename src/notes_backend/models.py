from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, Text
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Attachment(SQLModel, table=True):
    __tablename__ = "attachments"  # pyright: ignore[reportAssignmentType]

    id: str = Field(primary_key=True, min_length=1, max_length=36)

    # Metadata-only. Binary content lives in object storage under storage_key.
    storage_key: str = Field(min_length=1, max_length=512, unique=True, index=True)
    filename: Optional[str] = Field(default=None, max_length=255)
    content_type: Optional[str] = Field(default=None, max_length=255)
    size_bytes: int = Field(default=0)
    sha256_hex: Optional[str] = Field(default=None, max_length=64)

    created_at: datetime = Field(
        default_factory=utc_now, index=True, sa_type=DateTime(timezone=True)
    )


class Note(SQLModel, table=True):
    __tablename__ = "notes"  # pyright: ignore[reportAssignmentType]

    id: str = Field(primary_key=True, min_length=1, max_length=36)

    title: str = Field(max_length=200)
    content: str = Field(default="", sa_column=Column(Text, nullable=False))

    # At most one attachment per note; null when the note has no file.
    attachment_id: Optional[str] = Field(
        default=None, foreign_key="attachments.id", index=True, max_length=36
    )

    created_at: datetime = Field(
        default_factory=utc_now, index=True, sa_type=DateTime(timezone=True)
    )
    updated_at: datetime = Field(
        default_factory=utc_now, index=True, sa_type=DateTime(timezone=True)
    )


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything stored here is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
