"""Custom exception types raised while splitting a document."""

from __future__ import annotations


class SplitError(RuntimeError):
    """Base class for every failure the split pipeline knows how to report."""

    pass


class LoadError(SplitError):
    """Raised when the source bytes cannot be opened as a PDF."""

    pass


class ExtractionError(SplitError):
    """Raised when a page cannot be copied into its own document."""

    def __init__(self, message: str, *, page_index: int | None = None) -> None:
        super().__init__(message)
        self.page_index = page_index


class RenderError(SplitError):
    """Raised when a page document cannot be opened, painted or encoded."""

    pass


class ResourceError(SplitError):
    """Raised when a drawing surface cannot be allocated or is misused.

    This covers allocation failures as well as resizing or destroying a
    surface that was already destroyed.
    """

    pass


class StoreError(SplitError):
    """Raised when an artifact cannot be written to the object store."""

    def __init__(self, message: str, *, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


__all__ = [
    "ExtractionError",
    "LoadError",
    "RenderError",
    "ResourceError",
    "SplitError",
    "StoreError",
]
