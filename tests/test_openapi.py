from __future__ import annotations

from typing import cast

import httpx
import pytest

from notes_backend.main import app  # pyright: ignore[reportMissingTypeStubs]


def _make_async_client() -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=app)
    return httpx.AsyncClient(transport=transport, base_url="http://test")


@pytest.mark.anyio
async def test_openapi_documents_note_routes() -> None:
    async with _make_async_client() as client:
        r = await client.get("/openapi.json")
        assert r.status_code == 200

        data = cast(dict[str, object], r.json())
        paths = cast(dict[str, object], data.get("paths", {}))

        notes_path = cast(dict[str, object], paths.get("/api/notes"))
        assert set(notes_path) >= {"get", "post"}

        note_path = cast(dict[str, object], paths.get("/api/notes/{note_id}"))
        assert set(note_path) >= {"get", "put", "delete"}

        assert "/api/notes/{note_id}/file" in paths


@pytest.mark.anyio
async def test_update_form_exposes_remove_file_flag() -> None:
    async with _make_async_client() as client:
        data = cast(dict[str, object], (await client.get("/openapi.json")).json())

    schemas = cast(dict[str, object], cast(dict[str, object], data["components"])["schemas"])
    update_forms = [
        cast(dict[str, object], s)
        for name, s in schemas.items()
        if name.startswith("Body_update_note")
    ]
    assert update_forms
    props = cast(dict[str, object], update_forms[0]["properties"])
    assert "removeFile" in props
    assert "file" in props
