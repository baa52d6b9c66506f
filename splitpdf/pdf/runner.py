"""Split a PDF into per-page artifacts and upload them to an object store."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from splitpdf.errors import SplitError, StoreError
from splitpdf.utils.concurrency import ParallelExecutor, ProgressReporter
from splitpdf.utils.log_utils import source_logger

from .extract import extract_page, load_source
from .models import (
    PDF_CONTENT_TYPE,
    PNG_CONTENT_TYPE,
    Artifact,
    BlobReference,
    PageDocument,
    RunOutcome,
    RunState,
    SourceDocument,
    SplitResult,
)
from .naming import artifact_key, base_name, document_type_tag
from .render import DEFAULT_RENDER_SCALE, RasterRenderer


if TYPE_CHECKING:
    from loguru import Logger

    from splitpdf.storage.base import ObjectStore


SourceLoader = Callable[[bytes], SourceDocument]
PageExtractor = Callable[[SourceDocument, int], PageDocument]

T = TypeVar("T")


@dataclass(slots=True)
class SplitPipelineConfig:
    classify: bool = False
    notify: bool = False
    max_concurrency: int = 1
    render_scale: float = DEFAULT_RENDER_SCALE

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")


class _StageFailure(Exception):
    """Carries the state a page job was in when it failed."""

    def __init__(self, state: RunState, error: BaseException) -> None:
        super().__init__(str(error))
        self.state = state
        self.error = error


class SplitPipeline:
    """High-level coordinator for one split run.

    Document work (load, extract, render) is handed to a single worker thread
    owned by the run, so the PDF engine is never entered from two threads.
    Uploads are awaited on the event loop. With ``max_concurrency == 1`` pages
    go through extract, render and upload strictly in ascending order; higher
    values let several pages be in flight while keeping keys tied to the
    page index.

    In sequential mode the outcome's ``state`` follows each page through
    EXTRACT, RENDER and UPLOAD. With several pages in flight it holds the
    run-level phase (LOAD_SOURCE until every page is done) and the per-page
    stage of a failure is reported in ``failed_state``.
    """

    def __init__(
        self,
        store: ObjectStore,
        config: SplitPipelineConfig | None = None,
        *,
        renderer: RasterRenderer | None = None,
        loader: SourceLoader = load_source,
        extractor: PageExtractor = extract_page,
        progress_reporter: ProgressReporter | None = None,
    ) -> None:
        self._store = store
        self._config = config or SplitPipelineConfig()
        self._renderer = renderer or RasterRenderer(scale=self._config.render_scale)
        self._loader = loader
        self._extractor = extractor
        self._progress = progress_reporter

    @property
    def config(self) -> SplitPipelineConfig:
        return self._config

    async def run(self, source_bytes: bytes, source_identifier: str) -> RunOutcome:
        """Split ``source_bytes`` and upload one artifact per page.

        Errors never escape: they are logged and recorded on the returned
        outcome. Artifacts uploaded before a failure stay in the store.
        """
        log = source_logger(source_identifier)
        log.info(f"Triggered by: {source_identifier} ({len(source_bytes)} bytes).")
        outcome = RunOutcome(source_identifier=source_identifier)
        uploaded: dict[int, Artifact] = {}
        documents = ThreadPoolExecutor(max_workers=1, thread_name_prefix="splitpdf-doc")
        source: SourceDocument | None = None

        try:
            self._advance(outcome, RunState.LOAD_SOURCE, log)
            try:
                source = await self._offload(documents, self._loader, source_bytes)
            except Exception as exc:
                raise _StageFailure(RunState.LOAD_SOURCE, exc) from exc
            outcome.page_count = source.page_count

            base = base_name(source_identifier)
            loaded = source
            tracked = outcome if self._config.max_concurrency == 1 else None

            async def process(page_index: int) -> Artifact:
                artifact = await self._process_page(
                    documents, loaded, page_index, base, log, tracked
                )
                uploaded[page_index] = artifact
                return artifact

            executor = ParallelExecutor(
                max_concurrency=self._config.max_concurrency,
                progress_reporter=self._progress,
            )
            await executor.map(process, list(range(source.page_count)))

            outcome.artifacts = [uploaded[index] for index in sorted(uploaded)]
            self._advance(outcome, RunState.COMPLETED, log)
            log.info(f"Finished splitting {source_identifier} into {source.page_count} pages.")

            last = outcome.last_artifact
            if self._config.notify and last is not None:
                outcome.result = SplitResult(
                    blob=last.reference,
                    document_type=document_type_tag(source_identifier),
                )
        except _StageFailure as failure:
            self._fail(outcome, failure.state, failure.error, uploaded, log)
        except Exception as exc:
            self._fail(outcome, outcome.state, exc, uploaded, log)
        finally:
            if source is not None:
                await self._offload(documents, source.close)
            documents.shutdown(wait=False)

        return outcome

    async def _process_page(
        self,
        documents: ThreadPoolExecutor,
        source: SourceDocument,
        page_index: int,
        base: str,
        log: Logger,
        outcome: RunOutcome | None = None,
    ) -> Artifact:
        def enter(next_state: RunState) -> RunState:
            if outcome is not None:
                self._advance(outcome, next_state, log)
            log.debug(f"Page {page_index}: {next_state.value}")
            return next_state

        state = RunState.EXTRACT
        try:
            enter(state)
            page = await self._offload(documents, self._extractor, source, page_index)

            if self._config.classify:
                state = enter(RunState.RENDER)
                image = await self._offload(documents, self._renderer.render, page)
                data, content_type = image.data, PNG_CONTENT_TYPE
            else:
                data, content_type = page.data, PDF_CONTENT_TYPE

            state = enter(RunState.UPLOAD)
            key = artifact_key(base, page_index, classify=self._config.classify)
            log.debug(f"Page {page_index}: {state.value} {key} ({len(data)} bytes)")
            reference = await self._upload(key, data, content_type)
        except Exception as exc:
            raise _StageFailure(state, exc) from exc

        return Artifact(
            page_index=page_index,
            key=key,
            content_type=content_type,
            size=len(data),
            reference=reference,
        )

    async def _upload(self, key: str, data: bytes, content_type: str) -> BlobReference:
        try:
            return await self._store.upload(key, data, content_type)
        except StoreError:
            raise
        except Exception as exc:
            raise StoreError(f"Failed to upload {key}: {exc}", key=key) from exc

    @staticmethod
    async def _offload(documents: ThreadPoolExecutor, fn: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(documents, fn, *args)

    @staticmethod
    def _advance(outcome: RunOutcome, state: RunState, log: Logger) -> None:
        log.debug(f"{outcome.source_identifier}: {outcome.state.value} -> {state.value}")
        outcome.state = state

    @staticmethod
    def _fail(
        outcome: RunOutcome,
        state: RunState,
        error: BaseException,
        uploaded: dict[int, Artifact],
        log: Logger,
    ) -> None:
        outcome.artifacts = [uploaded[index] for index in sorted(uploaded)]
        outcome.failed_state = state
        outcome.state = RunState.FAILED
        outcome.result = None
        if isinstance(error, SplitError):
            outcome.error = error
            log.error(
                f"Exception occurred splitting pages from {outcome.source_identifier} "
                f"during {state.value}: {error}."
            )
            return

        wrapped = SplitError(f"Unexpected error during {state.value}: {error!r}")
        wrapped.__cause__ = error
        outcome.error = wrapped
        log.opt(exception=error).error(
            f"Unexpected exception splitting pages from {outcome.source_identifier} "
            f"during {state.value}."
        )


async def run_split_pipeline(
    source_bytes: bytes,
    source_identifier: str,
    store: ObjectStore,
    *,
    classify: bool = False,
    notify: bool = False,
    max_concurrency: int = 1,
    renderer: RasterRenderer | None = None,
    progress_reporter: ProgressReporter | None = None,
) -> dict[str, str] | None:
    """Trigger-facing entry point.

    Returns the ``{"Blob": ..., "Document Type": ...}`` descriptor when a
    notification channel is configured and the run completed with at least
    one page; otherwise ``None``.
    """
    config = SplitPipelineConfig(
        classify=classify,
        notify=notify,
        max_concurrency=max_concurrency,
    )
    pipeline = SplitPipeline(
        store,
        config,
        renderer=renderer,
        progress_reporter=progress_reporter,
    )
    outcome = await pipeline.run(source_bytes, source_identifier)
    if outcome.result is None:
        return None
    return outcome.result.to_dict()


__all__ = [
    "SplitPipeline",
    "SplitPipelineConfig",
    "run_split_pipeline",
]
