"""Dataclasses describing documents, pages and uploaded artifacts."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from PIL import Image, ImageDraw

    from splitpdf.errors import SplitError


PDF_CONTENT_TYPE = "application/pdf"
PNG_CONTENT_TYPE = "image/png"


@dataclass(frozen=True, slots=True)
class PageInfo:
    """Geometry of one source page in PDF points (rotation applied)."""

    index: int
    width: float
    height: float
    rotation: int = 0


@dataclass(eq=False)
class SourceDocument:
    """The multi-page input, loaded once per run and only read afterwards.

    ``handle`` is the open backend document; call :meth:`close` (or use the
    instance as a context manager) once every page has been extracted.
    """

    data: bytes
    pages: tuple[PageInfo, ...]
    handle: Any = field(default=None, repr=False)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def close(self) -> None:
        if self.handle is not None:
            self.handle.close()
            self.handle = None

    def __enter__(self) -> SourceDocument:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@dataclass(frozen=True, slots=True)
class PageDocument:
    """A standalone single-page PDF copied out of a source document."""

    source_index: int
    data: bytes
    width: float
    height: float

    @property
    def page_count(self) -> int:
        return 1


@dataclass(frozen=True, slots=True)
class Viewport:
    """Pixel extent of a page at a given scale; at 1.0 one point is one pixel."""

    width: int
    height: int
    scale: float = 1.0
    rotation: int = 0


@dataclass(eq=False, slots=True)
class Surface:
    """Ephemeral drawing target owned by a single render call.

    ``canvas`` is the backing pixel store and ``context`` the object painting
    goes through. Both are cleared, and the dimensions zeroed, on destroy.
    """

    width: int
    height: int
    canvas: Image.Image | None
    context: ImageDraw.ImageDraw | None
    destroyed: bool = False


@dataclass(frozen=True, slots=True)
class RasterImage:
    width: int
    height: int
    data: bytes
    format: str = "PNG"


@dataclass(frozen=True, slots=True)
class BlobReference:
    """Location of an uploaded blob as reported by the object store."""

    key: str
    url: str


@dataclass(frozen=True, slots=True)
class Artifact:
    page_index: int
    key: str
    content_type: str
    size: int
    reference: BlobReference


@dataclass(frozen=True, slots=True)
class SplitResult:
    """Descriptor handed to the downstream notification channel."""

    blob: BlobReference
    document_type: str

    def to_dict(self) -> dict[str, str]:
        return {"Blob": self.blob.url, "Document Type": self.document_type}


class RunState(str, Enum):
    INIT = "init"
    LOAD_SOURCE = "load_source"
    EXTRACT = "extract"
    RENDER = "render"
    UPLOAD = "upload"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(slots=True)
class RunOutcome:
    """Explicit result of one pipeline run.

    ``artifacts`` lists every uploaded artifact ordered by page index, including
    the ones written before a failure. ``result`` is only set for completed
    runs with a notification channel and at least one page.
    """

    source_identifier: str
    state: RunState = RunState.INIT
    page_count: int = 0
    artifacts: list[Artifact] = field(default_factory=list)
    result: SplitResult | None = None
    error: SplitError | None = None
    failed_state: RunState | None = None

    @property
    def ok(self) -> bool:
        return self.state == RunState.COMPLETED

    @property
    def last_artifact(self) -> Artifact | None:
        if not self.artifacts:
            return None
        return max(self.artifacts, key=lambda artifact: artifact.page_index)
