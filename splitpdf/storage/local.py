"""Filesystem-backed object store."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
import tempfile

from splitpdf.errors import StoreError
from splitpdf.pdf.models import BlobReference
from splitpdf.utils.log_utils import logger

from .base import ClosingStoreMixin


def resolve_key(root: Path, key: str) -> Path:
    """Map ``key`` to a path under ``root``, rejecting keys that escape it."""
    if not key or key.startswith(("/", "\\")):
        raise StoreError(f"Expected a relative blob key, got {key!r}.", key=key)
    resolved_root = root.expanduser().resolve()
    candidate = (resolved_root / key).resolve()
    if not candidate.is_relative_to(resolved_root):
        raise StoreError(f"Blob key escapes the store root: {key!r}.", key=key)
    return candidate


def _write_atomically(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class LocalDirectoryStore(ClosingStoreMixin):
    """Writes each blob to ``<root>/<key>``; re-uploads replace the file."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    async def upload(self, key: str, data: bytes, content_type: str) -> BlobReference:
        path = resolve_key(self._root, key)
        try:
            await asyncio.to_thread(_write_atomically, path, data)
        except OSError as exc:
            raise StoreError(f"Failed to write {key}: {exc}", key=key) from exc
        logger.debug(f"Wrote {len(data)} bytes ({content_type}) to {path}")
        return BlobReference(key=key, url=path.as_uri())


__all__ = ["LocalDirectoryStore", "resolve_key"]
