"""Shared builders and fakes for the test suite."""

from __future__ import annotations

from collections.abc import Sequence

import fitz

from splitpdf.errors import StoreError
from splitpdf.pdf.models import BlobReference


PageSize = tuple[float, float]


def build_pdf(page_sizes: Sequence[PageSize]) -> bytes:
    """Build a PDF with one labelled, partly filled page per size."""
    doc = fitz.open()
    try:
        for index, (width, height) in enumerate(page_sizes):
            page = doc.new_page(width=width, height=height)
            page.draw_rect(
                fitz.Rect(10, 10, width / 2, height / 3),
                color=(0.8, 0.1, 0.1),
                fill=(0.8, 0.1, 0.1),
            )
            page.insert_text((12, height - 20), f"Page {index + 1}", fontsize=11)
        return doc.tobytes()
    finally:
        doc.close()


class MemoryStore:
    """Object store fake that keeps uploads in a dict."""

    def __init__(self, *, fail_on: str | None = None) -> None:
        self.blobs: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.upload_order: list[str] = []
        self.closed = False
        self._fail_on = fail_on

    async def upload(self, key: str, data: bytes, content_type: str) -> BlobReference:
        if key == self._fail_on:
            raise StoreError(f"refusing {key}", key=key)
        self.blobs[key] = data
        self.content_types[key] = content_type
        self.upload_order.append(key)
        return BlobReference(key=key, url=f"memory://pages/{key}")

    async def close(self) -> None:
        self.closed = True


def build_empty_pdf() -> bytes:
    """Hand-write a valid PDF whose page tree has no pages.

    MuPDF refuses to save a document without pages, so the bytes and the
    cross-reference table are assembled directly.
    """
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [] /Count 0 >>",
    ]
    out = bytearray(b"%PDF-1.7\n")
    offsets: list[int] = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n%s\nendobj\n" % (number, body)
    xref_offset = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (
        len(objects) + 1,
        xref_offset,
    )
    return bytes(out)
