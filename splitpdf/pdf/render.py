"""Rasterization of single-page documents into PNG images."""

from __future__ import annotations

from io import BytesIO
from typing import Any, Protocol

import fitz  # PyMuPDF
from PIL import Image

from splitpdf.errors import RenderError, ResourceError
from splitpdf.utils.log_utils import logger

from .models import PageDocument, RasterImage, Surface, Viewport
from .surface import PillowSurfaceFactory, SurfaceFactory


# Device units map 1:1 to pixels (72 DPI for PDF points).
DEFAULT_RENDER_SCALE = 1.0


class RenderBackend(Protocol):
    """Engine that knows how to read a document and paint one of its pages."""

    def open(self, data: bytes) -> Any: ...

    def page_count(self, handle: Any) -> int: ...

    def viewport(self, handle: Any, page_index: int, scale: float) -> Viewport: ...

    def paint(self, handle: Any, page_index: int, surface: Surface, viewport: Viewport) -> None: ...

    def close(self, handle: Any) -> None: ...


class PymupdfRenderBackend:
    """Render backend built on PyMuPDF pixmaps."""

    def open(self, data: bytes) -> fitz.Document:
        try:
            return fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            raise RenderError(f"Cannot open page document: {exc}") from exc

    def page_count(self, handle: fitz.Document) -> int:
        return handle.page_count

    def viewport(self, handle: fitz.Document, page_index: int, scale: float) -> Viewport:
        page = handle[page_index]
        # Same rounding MuPDF applies to the pixmap bounds in get_pixmap.
        bounds = (page.rect * fitz.Matrix(scale, scale)).irect
        return Viewport(
            width=bounds.width,
            height=bounds.height,
            scale=scale,
            rotation=int(page.rotation),
        )

    def paint(
        self,
        handle: fitz.Document,
        page_index: int,
        surface: Surface,
        viewport: Viewport,
    ) -> None:
        if surface.canvas is None or surface.context is None:
            raise RenderError("Cannot paint into a destroyed surface.")

        page = handle[page_index]
        pix = page.get_pixmap(
            matrix=fitz.Matrix(viewport.scale, viewport.scale),
            colorspace=fitz.csRGB,
            alpha=False,
        )
        painted = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
        if painted.size != (surface.width, surface.height):
            logger.debug(
                f"Pixmap {painted.size} differs from surface {surface.width}x{surface.height}; clipping."
            )
        surface.context.rectangle((0, 0, surface.width, surface.height), fill="white")
        surface.canvas.paste(painted, (0, 0))
        painted.close()

    def close(self, handle: fitz.Document) -> None:
        handle.close()


def encode_png(surface: Surface) -> bytes:
    if surface.canvas is None:
        raise RenderError("Cannot encode a destroyed surface.")
    buffer = BytesIO()
    surface.canvas.save(buffer, format="PNG")
    return buffer.getvalue()


class RasterRenderer:
    """Paint a single-page document into a surface and encode it as PNG.

    The surface is created from the page viewport, so the image has exactly
    the viewport's pixel dimensions. It is destroyed before :meth:`render`
    returns or raises, whatever happened while painting.
    """

    def __init__(
        self,
        backend: RenderBackend | None = None,
        surface_factory: SurfaceFactory | None = None,
        *,
        scale: float = DEFAULT_RENDER_SCALE,
    ) -> None:
        if scale <= 0:
            raise ValueError("scale must be positive")
        self._backend = backend or PymupdfRenderBackend()
        self._surfaces = surface_factory or PillowSurfaceFactory()
        self._scale = scale

    def render(self, page: PageDocument) -> RasterImage:
        handle: Any = None
        surface: Surface | None = None
        failure: RenderError | None = None
        try:
            handle = self._backend.open(page.data)
            page_count = self._backend.page_count(handle)
            if page_count != 1:
                raise RenderError(f"Expected a single-page document, got {page_count} pages.")

            viewport = self._backend.viewport(handle, 0, self._scale)
            try:
                surface = self._surfaces.create(viewport.width, viewport.height)
            except ResourceError as exc:
                raise RenderError(f"Cannot allocate surface for page {page.source_index}: {exc}") from exc

            self._backend.paint(handle, 0, surface, viewport)
            data = encode_png(surface)
            return RasterImage(width=viewport.width, height=viewport.height, data=data)
        except RenderError as exc:
            failure = exc
            raise
        except Exception as exc:
            failure = RenderError(f"Failed to render page {page.source_index}: {exc}")
            raise failure from exc
        finally:
            self._release(page, surface, handle, failure)

    def _release(
        self,
        page: PageDocument,
        surface: Surface | None,
        handle: Any,
        failure: RenderError | None,
    ) -> None:
        """Destroy the surface and close the handle, even when one of them fails.

        A cleanup error is raised only when rendering itself succeeded;
        otherwise it is logged and the render failure propagates.
        """
        errors: list[Exception] = []
        if surface is not None:
            try:
                self._surfaces.destroy(surface)
            except Exception as exc:
                errors.append(exc)
        if handle is not None:
            try:
                self._backend.close(handle)
            except Exception as exc:
                errors.append(exc)

        if not errors:
            return
        if failure is not None:
            for error in errors:
                logger.warning(
                    f"Cleanup after failed render of page {page.source_index} also failed: {error!r}"
                )
            return
        raise RenderError(
            f"Failed to release render resources for page {page.source_index}: {errors[0]}"
        ) from errors[0]


__all__ = [
    "DEFAULT_RENDER_SCALE",
    "PymupdfRenderBackend",
    "RasterRenderer",
    "RenderBackend",
    "encode_png",
]
