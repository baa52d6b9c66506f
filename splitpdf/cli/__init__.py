"""Command-line interface for splitpdf."""

from .main import app


__all__ = ["app"]
