from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    # The presentation layer speaks camelCase (hasFile, fileName, ...).
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Note(_CamelModel):
    id: str = Field(min_length=1, max_length=36)
    title: str = Field(max_length=200)
    content: str
    created_at: datetime
    updated_at: datetime

    # Attachment summary; raw bytes are only served by the file endpoint.
    has_file: bool = False
    file_name: str | None = None
    file_type: str | None = None
    file_size: int | None = None
    previewable: bool = False
    attachment_url: str | None = None


class ErrorResponse(BaseModel):
    """Unified error body returned by every endpoint.

    `error` is a stable machine code (not_found, invalid_argument, ...),
    `message` is human readable, `details` is optional structured context.
    """

    error: str
    message: str
    request_id: str | None = None
    details: object | None = None
