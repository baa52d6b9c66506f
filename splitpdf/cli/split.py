from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path

import typer

from splitpdf.config import SplitSettings, get_settings
from splitpdf.errors import StoreError
from splitpdf.pdf import SplitPipeline, SplitPipelineConfig
from splitpdf.storage import LocalDirectoryStore, ObjectStore
from splitpdf.storage.azure_blob import AzureBlobStore
from splitpdf.utils.concurrency import TqdmProgressReporter
from splitpdf.utils.log_utils import logger


EXIT_OK = 0
EXIT_RUN_FAILED = 1
EXIT_USAGE = 2


@dataclass(slots=True)
class SplitOptions:
    input_file: Path
    identifier: str | None
    output_dir: Path | None
    classify: bool | None
    notify: bool | None
    max_concurrency: int | None
    env_file: Path | None
    progress: bool = True


def default_identifier(input_file: Path) -> str:
    """Mimic a blob trigger path: ``<parent directory>/<file name>``."""
    parent = input_file.resolve().parent.name
    return f"{parent}/{input_file.name}" if parent else input_file.name


def build_store(options: SplitOptions, settings: SplitSettings) -> ObjectStore | None:
    output_dir = options.output_dir or settings.storage.output_dir
    if output_dir is not None:
        return LocalDirectoryStore(output_dir)
    if settings.storage.connection_string:
        return AzureBlobStore.from_connection_string(
            settings.storage.connection_string,
            settings.storage.pages_container,
        )
    return None


async def run(options: SplitOptions) -> int:
    settings = get_settings(options.env_file, reload=options.env_file is not None)

    classify = (
        settings.pipeline.requires_classification if options.classify is None else options.classify
    )
    notify = settings.pipeline.notify if options.notify is None else options.notify
    max_concurrency = (
        settings.pipeline.max_concurrency
        if options.max_concurrency is None
        else options.max_concurrency
    )
    if max_concurrency < 1:
        logger.error(f"--max-concurrency must be >= 1, got {max_concurrency}.")
        return EXIT_USAGE

    identifier = options.identifier or default_identifier(options.input_file)
    try:
        source_bytes = options.input_file.read_bytes()
    except OSError as exc:
        logger.error(f"Cannot read {options.input_file}: {exc}")
        return EXIT_USAGE

    try:
        store = build_store(options, settings)
    except StoreError as exc:
        logger.error(f"Cannot create object store: {exc}")
        return EXIT_USAGE
    if store is None:
        logger.error(
            "No object store configured. Pass --output-dir, or set SPLIT_OUTPUT_DIR "
            "or STORAGE_ACCOUNT."
        )
        return EXIT_USAGE

    progress = TqdmProgressReporter("split") if options.progress else None
    pipeline = SplitPipeline(
        store,
        SplitPipelineConfig(
            classify=classify,
            notify=notify,
            max_concurrency=max_concurrency,
        ),
        progress_reporter=progress,
    )
    try:
        outcome = await pipeline.run(source_bytes, identifier)
    finally:
        if progress is not None:
            progress.close()
        await store.close()

    for artifact in outcome.artifacts:
        logger.info(f"{artifact.key}: {artifact.reference.url}")
    if outcome.result is not None:
        typer.echo(json.dumps(outcome.result.to_dict(), ensure_ascii=False))
    return EXIT_OK if outcome.ok else EXIT_RUN_FAILED
