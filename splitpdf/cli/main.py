from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from functools import wraps
from pathlib import Path
from typing import Any, ParamSpec, TypeVar

import typer  # type: ignore[import]

from splitpdf.utils.log_utils import configure_logging, logger

from . import split


app = typer.Typer(
    help="Split PDFs into single-page documents or page images in an object store.",
)


_P = ParamSpec("_P")
_T = TypeVar("_T")


def _synchronous(handler: Callable[_P, Coroutine[Any, Any, _T]]) -> Callable[_P, _T]:
    @wraps(handler)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _T:
        try:
            return asyncio.run(handler(*args, **kwargs))
        except KeyboardInterrupt as err:
            logger.info("Interrupted by user")
            raise typer.Exit(code=130) from err

    return wrapper


@app.callback()
def main_callback(
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Console log level (DEBUG, INFO, WARNING, ERROR). Defaults to SPLITPDF_LOG_LEVEL or INFO.",
    ),
) -> None:
    if log_level:
        configure_logging(console_level=log_level)


@app.command("split")
@_synchronous
async def split_command(
    input_file: Path = typer.Argument(
        ...,
        help="PDF to split.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    identifier: str | None = typer.Option(
        None,
        "--identifier",
        help="Source identifier '<container>/<blob name>'. Defaults to '<parent dir>/<file name>'.",
    ),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        help="Write artifacts to this directory instead of Azure Blob Storage.",
        file_okay=False,
        dir_okay=True,
        writable=True,
    ),
    classify: bool | None = typer.Option(
        None,
        "--classify/--no-classify",
        help="Upload PNG renderings instead of single-page PDFs. Defaults to REQUIRES_CLASSIFICATION.",
        show_default=False,
    ),
    notify: bool | None = typer.Option(
        None,
        "--notify/--no-notify",
        help="Print the result descriptor. Defaults to whether SERVICE_BUS is set.",
        show_default=False,
    ),
    max_concurrency: int | None = typer.Option(
        None,
        "--max-concurrency",
        help="Pages in flight at once. Defaults to SPLIT_MAX_CONCURRENCY or 1.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Explicit .env file to load settings from.",
        exists=True,
        dir_okay=False,
    ),
    no_progress: bool = typer.Option(
        False,
        "--no-progress",
        help="Disable the per-page progress bar.",
    ),
) -> int:
    options = split.SplitOptions(
        input_file=input_file,
        identifier=identifier,
        output_dir=output_dir,
        classify=classify,
        notify=notify,
        max_concurrency=max_concurrency,
        env_file=env_file,
        progress=not no_progress,
    )
    result = await split.run(options)
    if result != 0:
        raise typer.Exit(code=result)
    return result


def main() -> None:
    app()


if __name__ == "__main__":
    main()
