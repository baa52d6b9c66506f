"""Deterministic storage keys and tags derived from a source identifier.

A source identifier has the shape ``"<container>/<blob name>"``, which is
what a blob trigger reports for the document that fired it.
"""

from __future__ import annotations


PATH_SEPARATOR = "/"


def blob_name(source_identifier: str) -> str:
    """Part of the identifier after its first separator (the container prefix)."""
    head, sep, tail = source_identifier.partition(PATH_SEPARATOR)
    return tail if sep else head


def base_name(source_identifier: str) -> str:
    """Blob name without its trailing extension.

    >>> base_name("invoices/report.pdf")
    'report'
    >>> base_name("invoices/2024/q1.report.pdf")
    '2024/q1.report'
    """
    name = blob_name(source_identifier)
    dot = name.rfind(".")
    if dot <= name.rfind(PATH_SEPARATOR):
        return name
    return name[:dot]


def artifact_key(base: str, page_index: int, *, classify: bool) -> str:
    extension = "png" if classify else "pdf"
    return f"{base}-{page_index}.{extension}"


def document_type_tag(source_identifier: str) -> str:
    """Suffix from the first separator with its first hyphen turned into a space.

    The extension is kept: ``"invoices/credit-note.pdf"`` maps to
    ``"/credit note.pdf"``.
    """
    start = source_identifier.find(PATH_SEPARATOR)
    suffix = source_identifier[start:] if start >= 0 else source_identifier
    return suffix.replace("-", " ", 1)


__all__ = ["artifact_key", "base_name", "blob_name", "document_type_tag"]
