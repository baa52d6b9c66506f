"""Drawing-surface lifecycle used while rasterizing a page.

Rendering never allocates pixel memory directly: it asks a
:class:`SurfaceFactory` for a surface, paints into the surface's context and
hands the surface back for destruction. Swapping the factory swaps the
graphics stack, which is how the renderer is exercised against a fake in the
tests.
"""

from __future__ import annotations

from typing import Protocol

from PIL import Image, ImageDraw

from splitpdf.errors import ResourceError
from splitpdf.utils.log_utils import logger

from .models import Surface


# Upper bound on width * height; larger requests fail before allocating.
MAX_SURFACE_PIXELS = 1 << 28
BACKGROUND_COLOR = "white"


class SurfaceFactory(Protocol):
    def create(self, width: int, height: int) -> Surface: ...

    def reset(self, surface: Surface, width: int, height: int) -> None: ...

    def destroy(self, surface: Surface) -> None: ...


def _check_dimensions(width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise ResourceError(f"Surface dimensions must be positive, got {width}x{height}.")
    if width * height > MAX_SURFACE_PIXELS:
        raise ResourceError(
            f"Surface of {width}x{height} pixels exceeds the limit of {MAX_SURFACE_PIXELS} pixels."
        )


def _check_alive(surface: Surface) -> None:
    if surface.destroyed:
        raise ResourceError("Surface was already destroyed.")


class PillowSurfaceFactory:
    """Surface factory backed by an RGB Pillow image and its ImageDraw context."""

    def __init__(self, mode: str = "RGB", background: str = BACKGROUND_COLOR) -> None:
        self._mode = mode
        self._background = background

    def _allocate(self, width: int, height: int) -> Image.Image:
        try:
            return Image.new(self._mode, (width, height), color=self._background)
        except (MemoryError, ValueError) as exc:
            raise ResourceError(f"Failed to allocate a {width}x{height} surface: {exc}") from exc

    def create(self, width: int, height: int) -> Surface:
        _check_dimensions(width, height)
        canvas = self._allocate(width, height)
        logger.debug(f"Created {width}x{height} surface")
        return Surface(
            width=width,
            height=height,
            canvas=canvas,
            context=ImageDraw.Draw(canvas),
        )

    def reset(self, surface: Surface, width: int, height: int) -> None:
        _check_alive(surface)
        _check_dimensions(width, height)
        # Pillow images cannot change size in place, so the backing store is swapped.
        canvas = self._allocate(width, height)
        if surface.canvas is not None:
            surface.canvas.close()
        surface.canvas = canvas
        surface.context = ImageDraw.Draw(canvas)
        surface.width = width
        surface.height = height

    def destroy(self, surface: Surface) -> None:
        _check_alive(surface)
        if surface.canvas is not None:
            surface.canvas.close()
        surface.width = 0
        surface.height = 0
        surface.canvas = None
        surface.context = None
        surface.destroyed = True


__all__ = ["MAX_SURFACE_PIXELS", "PillowSurfaceFactory", "SurfaceFactory"]
