from __future__ import annotations

from pathlib import Path

from azure.core.exceptions import ResourceNotFoundError
import pytest

from splitpdf.errors import StoreError
from splitpdf.storage import LocalDirectoryStore
from splitpdf.storage.azure_blob import AzureBlobStore


@pytest.mark.asyncio
async def test_local_store_writes_and_overwrites(tmp_path: Path) -> None:
    """Uploading the same key twice keeps the latest bytes."""
    async with LocalDirectoryStore(tmp_path / "pages") as store:
        first = await store.upload("report-0.pdf", b"one", "application/pdf")
        second = await store.upload("report-0.pdf", b"two", "application/pdf")

    target = tmp_path / "pages" / "report-0.pdf"
    assert target.read_bytes() == b"two"
    assert first == second
    assert first.key == "report-0.pdf"
    assert first.url == target.resolve().as_uri()
    assert [path.name for path in target.parent.iterdir()] == ["report-0.pdf"]


@pytest.mark.asyncio
async def test_local_store_creates_nested_keys(tmp_path: Path) -> None:
    """Keys containing separators create subdirectories."""
    store = LocalDirectoryStore(tmp_path)

    await store.upload("2024/q1/report-3.png", b"\x89PNG", "image/png")

    assert (tmp_path / "2024" / "q1" / "report-3.png").read_bytes() == b"\x89PNG"


@pytest.mark.asyncio
@pytest.mark.parametrize("key", ["../escape.pdf", "/etc/passwd", ""])
async def test_local_store_rejects_keys_outside_root(tmp_path: Path, key: str) -> None:
    """Empty, absolute and escaping keys raise StoreError."""
    store = LocalDirectoryStore(tmp_path / "root")

    with pytest.raises(StoreError):
        await store.upload(key, b"x", "application/pdf")


class _FakeBlobClient:
    def __init__(self, container: _FakeContainerClient, key: str) -> None:
        self._container = container
        self.key = key
        self.url = f"https://acct.blob.core.windows.net/{container.container_name}/{key}"

    async def upload_blob(self, data: bytes, **kwargs: object) -> dict[str, str]:
        if self._container.error is not None:
            raise self._container.error
        self._container.uploads[self.key] = (data, kwargs)
        return {"etag": "0x1"}


class _FakeContainerClient:
    def __init__(self, error: Exception | None = None) -> None:
        self.container_name = "pages"
        self.uploads: dict[str, tuple[bytes, dict[str, object]]] = {}
        self.error = error
        self.closed = False

    def get_blob_client(self, key: str) -> _FakeBlobClient:
        return _FakeBlobClient(self, key)

    async def close(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_azure_store_uploads_block_blob_with_overwrite() -> None:
    """Uploads overwrite and carry the content type."""
    container = _FakeContainerClient()
    store = AzureBlobStore(container)  # type: ignore[arg-type]

    reference = await store.upload("report-1.png", b"png-bytes", "image/png")
    await store.close()

    data, kwargs = container.uploads["report-1.png"]
    assert data == b"png-bytes"
    assert kwargs["overwrite"] is True
    assert kwargs["length"] == len(b"png-bytes")
    assert kwargs["content_settings"].content_type == "image/png"
    assert reference.url == "https://acct.blob.core.windows.net/pages/report-1.png"
    assert container.closed


@pytest.mark.asyncio
async def test_azure_store_wraps_service_errors() -> None:
    """Azure SDK errors surface as StoreError with the key."""
    store = AzureBlobStore(_FakeContainerClient(error=ResourceNotFoundError("no container")))  # type: ignore[arg-type]

    with pytest.raises(StoreError) as excinfo:
        await store.upload("report-0.pdf", b"pdf", "application/pdf")

    assert excinfo.value.key == "report-0.pdf"
    assert isinstance(excinfo.value.__cause__, ResourceNotFoundError)


def test_azure_store_rejects_malformed_connection_string() -> None:
    """A malformed connection string raises StoreError."""
    with pytest.raises(StoreError):
        AzureBlobStore.from_connection_string("not-a-connection-string", "pages")
