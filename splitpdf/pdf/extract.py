"""Source loading and single-page extraction backed by PyMuPDF."""

from __future__ import annotations

import fitz  # PyMuPDF

from splitpdf.errors import ExtractionError, LoadError
from splitpdf.utils.log_utils import logger

from .models import PageDocument, PageInfo, SourceDocument


# Drop unreferenced objects and compact the xref table of each page document.
_SAVE_OPTIONS = {"garbage": 3, "deflate": True}


def load_source(data: bytes) -> SourceDocument:
    """Open ``data`` as a PDF and capture its page geometry.

    Raises:
        LoadError: when the bytes are empty, not a PDF, or password protected.
    """
    if not data:
        raise LoadError("Source document is empty.")
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as exc:
        raise LoadError(f"Cannot open source document: {exc}") from exc

    try:
        if not doc.is_pdf:
            raise LoadError("Source document is not a PDF.")
        if doc.needs_pass:
            raise LoadError("Source document is encrypted.")
        pages = tuple(
            PageInfo(
                index=page.number,
                width=float(page.rect.width),
                height=float(page.rect.height),
                rotation=int(page.rotation),
            )
            for page in doc
        )
    except LoadError:
        doc.close()
        raise
    except Exception as exc:
        doc.close()
        raise LoadError(f"Cannot read page tree of source document: {exc}") from exc

    logger.debug(f"Loaded source document with {len(pages)} page(s) ({len(data)} bytes)")
    return SourceDocument(data=data, pages=pages, handle=doc)


def extract_page(source: SourceDocument, page_index: int) -> PageDocument:
    """Copy one page, with every resource it references, into a new PDF.

    The source is only read. Fonts, images and graphics state referenced by
    the page are grafted into the new document so it renders on its own.

    Raises:
        ExtractionError: when the index is out of range, the source is closed,
            or the copy does not produce a valid single-page document.
    """
    if not 0 <= page_index < source.page_count:
        raise ExtractionError(
            f"Page index {page_index} out of range (0..{source.page_count - 1}).",
            page_index=page_index,
        )
    if source.handle is None:
        raise ExtractionError("Source document is closed.", page_index=page_index)

    target = fitz.open()
    try:
        target.insert_pdf(source.handle, from_page=page_index, to_page=page_index)
        if target.page_count != 1:
            raise ExtractionError(
                f"Copying page {page_index} produced {target.page_count} pages.",
                page_index=page_index,
            )
        data = target.tobytes(**_SAVE_OPTIONS)
    except ExtractionError:
        raise
    except Exception as exc:
        raise ExtractionError(
            f"Failed to copy page {page_index}: {exc}", page_index=page_index
        ) from exc
    finally:
        target.close()

    _verify_single_page(data, page_index)
    info = source.pages[page_index]
    return PageDocument(source_index=page_index, data=data, width=info.width, height=info.height)


def _verify_single_page(data: bytes, page_index: int) -> None:
    try:
        with fitz.open(stream=data, filetype="pdf") as reopened:
            page_count = reopened.page_count
    except Exception as exc:
        raise ExtractionError(
            f"Page document for page {page_index} cannot be reopened: {exc}",
            page_index=page_index,
        ) from exc
    if page_count != 1:
        raise ExtractionError(
            f"Page document for page {page_index} has {page_count} pages.",
            page_index=page_index,
        )


__all__ = ["extract_page", "load_source"]
