"""Bounded concurrency helpers for running per-page async jobs."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Protocol, TypeVar

from tqdm import tqdm

from .log_utils import logger


class ProgressReporter(Protocol):
    """Lightweight progress reporter abstraction."""

    def start(self, total: int) -> None: ...

    def increment(self) -> None: ...

    def close(self) -> None: ...


class TqdmProgressReporter:
    """Progress reporter backed by tqdm."""

    def __init__(self, desc: str, unit: str = "page") -> None:
        self._desc = desc
        self._unit = unit
        self._pbar: tqdm | None = None

    def start(self, total: int) -> None:
        self.close()
        self._pbar = tqdm(
            total=total,
            desc=self._desc,
            unit=self._unit,
            smoothing=0,
            leave=False,
        )

    def increment(self) -> None:
        if self._pbar is not None:
            self._pbar.update(1)

    def close(self) -> None:
        if self._pbar is not None:
            self._pbar.close()
            self._pbar = None


T = TypeVar("T")
ItemT = TypeVar("ItemT")


class ParallelExecutor:
    """Run an async callable over items with a fixed pool of workers.

    Items are handed out in input order. With ``max_concurrency=1`` jobs run
    strictly one after another, and a failing job leaves every later item
    untouched. With more workers the first failure cancels the remaining
    workers and is re-raised from :meth:`map`; jobs that already finished are
    not undone.
    """

    def __init__(
        self,
        *,
        max_concurrency: int,
        progress_reporter: ProgressReporter | None = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._max_concurrency = max_concurrency
        self._progress = progress_reporter

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    async def map(
        self,
        fn: Callable[[ItemT], Awaitable[T]],
        items: Sequence[ItemT],
    ) -> list[T]:
        """Execute ``fn`` for every item; results keep the input order."""
        total = len(items)
        if total == 0:
            return []

        results: list[T | None] = [None] * total
        queue: asyncio.Queue[int] = asyncio.Queue()
        for index in range(total):
            queue.put_nowait(index)

        if self._progress:
            self._progress.start(total)

        async def worker() -> None:
            while True:
                try:
                    index = queue.get_nowait()
                except asyncio.QueueEmpty:
                    break
                try:
                    results[index] = await fn(items[index])
                finally:
                    queue.task_done()
                if self._progress:
                    self._progress.increment()

        try:
            async with asyncio.TaskGroup() as tg:
                for _ in range(min(self._max_concurrency, total)):
                    tg.create_task(worker())
        except BaseExceptionGroup as group:
            first = group.exceptions[0]
            if len(group.exceptions) > 1:
                logger.debug(
                    f"Parallel executor stopped with {len(group.exceptions)} failed job(s); "
                    f"re-raising the first: {first!r}"
                )
            raise first from None
        finally:
            if self._progress:
                self._progress.close()

        return results  # type: ignore[return-value]
