"""Centralised environment configuration for splitpdf.

This module ensures `.env` loading happens in one place and exposes a
typed snapshot of the storage target and the pipeline switches that the
blob-triggered function used to read from its app settings. Downstream
modules call `get_settings()` instead of touching `os.environ` directly,
making it easier to validate values and override behaviour in tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os
from pathlib import Path

from dotenv import load_dotenv


_DEFAULT_ENV_PATH = Path(__file__).resolve().parents[2] / ".env"

DEFAULT_PAGES_CONTAINER = "pages"
DEFAULT_MAX_CONCURRENCY = 1

_TRUTHY = {"1", "true", "yes", "on"}


def _coerce_int(value: str | None) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _coerce_bool(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in _TRUTHY


def _non_empty(value: str | None) -> str | None:
    if value is None or value.strip() == "":
        return None
    return value


@dataclass(frozen=True)
class StorageSettings:
    connection_string: str | None
    pages_container: str
    output_dir: Path | None


@dataclass(frozen=True)
class PipelineSettings:
    requires_classification: bool
    notify_channel: str | None
    max_concurrency: int

    @property
    def notify(self) -> bool:
        """True when a downstream notification channel is configured."""
        return self.notify_channel is not None


@dataclass(frozen=True)
class SplitSettings:
    """Top-level snapshot of configuration values."""

    env_file: Path
    storage: StorageSettings
    pipeline: PipelineSettings


def _resolve_env_path(env_file: os.PathLike[str] | str | None) -> Path:
    if env_file is None:
        return _DEFAULT_ENV_PATH
    return Path(env_file).resolve()


@lru_cache(maxsize=4)
def _load_settings(env_path: Path) -> SplitSettings:
    # Load the environment file once per unique path. We avoid override=True so
    # that existing environment variables take precedence over `.env` defaults.
    load_dotenv(dotenv_path=env_path, override=False)

    output_dir = _non_empty(os.getenv("SPLIT_OUTPUT_DIR"))
    storage = StorageSettings(
        connection_string=_non_empty(os.getenv("STORAGE_ACCOUNT")),
        pages_container=_non_empty(os.getenv("PAGES_CONTAINER")) or DEFAULT_PAGES_CONTAINER,
        output_dir=Path(output_dir).expanduser() if output_dir else None,
    )

    max_concurrency = _coerce_int(os.getenv("SPLIT_MAX_CONCURRENCY"))
    if max_concurrency is None or max_concurrency < 1:
        max_concurrency = DEFAULT_MAX_CONCURRENCY

    pipeline = PipelineSettings(
        requires_classification=_coerce_bool(os.getenv("REQUIRES_CLASSIFICATION")),
        notify_channel=_non_empty(os.getenv("SERVICE_BUS")),
        max_concurrency=max_concurrency,
    )

    return SplitSettings(env_file=env_path, storage=storage, pipeline=pipeline)


def get_settings(
    env_file: os.PathLike[str] | str | None = None,
    *,
    reload: bool = False,
) -> SplitSettings:
    """Return the cached settings snapshot.

    Args:
        env_file: Optional explicit path to a `.env` file. When omitted the repo
            root `.env` file is used.
        reload: When True the cached snapshot is cleared before loading.
    """
    env_path = _resolve_env_path(env_file)
    if reload:
        _load_settings.cache_clear()
    return _load_settings(env_path)
