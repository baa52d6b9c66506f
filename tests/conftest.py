from __future__ import annotations

import pytest

from helpers import MemoryStore, build_pdf


@pytest.fixture
def three_page_pdf() -> bytes:
    return build_pdf([(200, 300), (300, 200), (120, 160)])


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()
