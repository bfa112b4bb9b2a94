from __future__ import annotations

from typing import Any

import pytest
from botocore.exceptions import ClientError

from notes_backend.integrations.storage.s3_storage import S3ObjectStorage


class _FakeBody:
    def __init__(self, data: bytes) -> None:
        self._data = data

    def read(self) -> bytes:
        return self._data


class _FakeS3Client:
    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.put_calls: list[dict[str, Any]] = []
        self.delete_calls: list[dict[str, Any]] = []

    def put_object(self, **kwargs: Any) -> None:
        self.put_calls.append(dict(kwargs))
        self.objects[kwargs["Key"]] = kwargs["Body"]

    def get_object(self, *, Bucket: str, Key: str) -> dict[str, Any]:
        _ = Bucket
        if Key not in self.objects:
            raise ClientError(
                {"Error": {"Code": "NoSuchKey", "Message": "missing"}}, "GetObject"
            )
        return {"Body": _FakeBody(self.objects[Key])}

    def delete_object(self, *, Bucket: str, Key: str) -> None:
        self.delete_calls.append({"Bucket": Bucket, "Key": Key})
        self.objects.pop(Key, None)


def _make_storage(
    monkeypatch: pytest.MonkeyPatch, fake: _FakeS3Client, *, force_path_style: bool
) -> tuple[S3ObjectStorage, list[dict[str, Any]]]:
    boto3_calls: list[dict[str, Any]] = []

    import boto3

    def _fake_client(service_name: str, **kwargs: Any):
        boto3_calls.append({"service_name": service_name, **kwargs})
        return fake

    async def _run_inline(fn, *args, **kwargs):  # type: ignore[no-untyped-def]
        return fn(*args, **kwargs)

    monkeypatch.setattr(boto3, "client", _fake_client)
    monkeypatch.setattr(
        "notes_backend.integrations.storage.s3_storage.run_in_threadpool", _run_inline
    )

    s = S3ObjectStorage(
        endpoint_url="http://localhost:9000",
        region="",
        bucket="bucket",
        access_key_id="ak",
        secret_access_key="sk",
        force_path_style=force_path_style,
    )
    return s, boto3_calls


@pytest.mark.anyio
async def test_s3_object_storage_put_get_delete(monkeypatch: pytest.MonkeyPatch):
    fake = _FakeS3Client()
    s, boto3_calls = _make_storage(monkeypatch, fake, force_path_style=True)
    assert boto3_calls and boto3_calls[0]["service_name"] == "s3"
    assert boto3_calls[0]["region_name"] is None

    await s.put_bytes("k1", b"data")
    await s.put_bytes("k2", b"data2", content_type="image/png")
    assert await s.get_bytes("k2") == b"data2"
    await s.delete("k1")

    assert fake.put_calls[0]["Bucket"] == "bucket"
    assert fake.put_calls[0]["Key"] == "k1"
    assert "ContentType" not in fake.put_calls[0]
    assert fake.put_calls[1]["ContentType"] == "image/png"
    assert fake.delete_calls == [{"Bucket": "bucket", "Key": "k1"}]


@pytest.mark.anyio
async def test_s3_object_storage_missing_key_is_file_not_found(monkeypatch: pytest.MonkeyPatch):
    fake = _FakeS3Client()
    s, _ = _make_storage(monkeypatch, fake, force_path_style=False)

    with pytest.raises(FileNotFoundError):
        await s.get_bytes("nope")
