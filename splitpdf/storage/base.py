"""Object store abstraction the pipeline uploads artifacts through."""

from __future__ import annotations

from types import TracebackType
from typing import Protocol, Self

from splitpdf.pdf.models import BlobReference


class ObjectStore(Protocol):
    """Keyed blob storage.

    ``upload`` must be idempotent per key: uploading to an existing key
    replaces its content. Failures are reported as
    :class:`splitpdf.errors.StoreError`.
    """

    async def upload(self, key: str, data: bytes, content_type: str) -> BlobReference: ...

    async def close(self) -> None: ...


class ClosingStoreMixin:
    """Async context-manager support for stores that expose ``close``."""

    async def close(self) -> None:
        return None

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.close()


__all__ = ["ClosingStoreMixin", "ObjectStore"]
