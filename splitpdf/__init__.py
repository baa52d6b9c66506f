"""Split multi-page PDFs into per-page documents or images in an object store."""

__version__ = "0.1.0"
