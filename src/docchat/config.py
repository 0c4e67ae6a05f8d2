"""Environment-driven configuration."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

LOGGER = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parents[2]


def load_env_files(project_root: Path | None = None) -> None:
    """Load ``.env.local`` then ``.env``; values already set are never overridden."""

    root = project_root or _PROJECT_ROOT
    for name in (".env.local", ".env"):
        env_file = root / name
        if env_file.exists():
            load_dotenv(dotenv_path=env_file, override=False)
            LOGGER.debug("Loaded environment file %s", env_file)


def _int_from_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        LOGGER.warning("Invalid integer for %s: %s; using default %s", name, value, default)
        return default


def _float_from_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        LOGGER.warning("Invalid float for %s: %s; using default %s", name, value, default)
        return default


def _path_from_env(name: str) -> Path | None:
    value = os.getenv(name, "").strip()
    return Path(value) if value else None


@dataclass(slots=True)
class Settings:
    chunk_size: int = 2000
    chunk_overlap: int = 200
    chunk_store: str = "memory"
    store_persist_path: Path | None = None
    chroma_persist_dir: Path = Path("chroma_db")
    synonym_dictionary_path: Path | None = None
    corpus_dir: Path = Path("data/pdf")
    ingest_batch_size: int = 2
    reset_batch_size: int = 100
    reset_max_retries: int = 3
    reset_base_delay: float = 1.0
    reset_inter_batch_delay: float = 0.2
    log_dir: Path = Path("logs")

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            chunk_size=_int_from_env("CHUNK_SIZE", 2000),
            chunk_overlap=_int_from_env("CHUNK_OVERLAP", 200),
            chunk_store=os.getenv("CHUNK_STORE", "memory").strip().lower(),
            store_persist_path=_path_from_env("STORE_PERSIST_PATH"),
            chroma_persist_dir=Path(os.getenv("CHROMA_PERSIST_DIR", "chroma_db")),
            synonym_dictionary_path=_path_from_env("SYNONYM_DICTIONARY_PATH"),
            corpus_dir=Path(os.getenv("CORPUS_DIR", "data/pdf")),
            ingest_batch_size=max(1, _int_from_env("INGEST_BATCH_SIZE", 2)),
            reset_batch_size=min(500, max(1, _int_from_env("RESET_BATCH_SIZE", 100))),
            reset_max_retries=max(1, _int_from_env("RESET_MAX_RETRIES", 3)),
            reset_base_delay=_float_from_env("RESET_BASE_DELAY", 1.0),
            reset_inter_batch_delay=_float_from_env("RESET_INTER_BATCH_DELAY", 0.2),
            log_dir=Path(os.getenv("LOG_DIR", "logs")),
        )


@lru_cache()
def get_settings() -> Settings:
    """Return the cached settings, loading dotenv files on first use."""

    load_env_files()
    return Settings.from_env()


def reset_settings_cache() -> None:
    """Clear the cached settings (primarily for testing)."""

    get_settings.cache_clear()  # type: ignore[attr-defined]


__all__ = ["Settings", "get_settings", "load_env_files", "reset_settings_cache"]
