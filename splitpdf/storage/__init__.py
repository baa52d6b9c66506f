"""Object stores the split pipeline can upload artifacts to."""

from .base import ObjectStore
from .local import LocalDirectoryStore


__all__ = ["LocalDirectoryStore", "ObjectStore"]
