from pathlib import Path

import pytest

from docchat.config import Settings, get_settings, load_env_files, reset_settings_cache
from docchat.store import get_chunk_store
from docchat.store.memory_store import InMemoryChunkStore


def test_settings_defaults() -> None:
    settings = get_settings()

    assert settings.chunk_size == 2000
    assert settings.chunk_overlap == 200
    assert settings.chunk_store == "memory"
    assert settings.reset_batch_size == 100
    assert settings.reset_max_retries == 3


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("CHUNK_SIZE", "500")
    monkeypatch.setenv("CHUNK_OVERLAP", "not-a-number")
    monkeypatch.setenv("RESET_BATCH_SIZE", "9000")
    monkeypatch.setenv("CORPUS_DIR", "/srv/corpus")
    reset_settings_cache()

    settings = get_settings()

    assert settings.chunk_size == 500
    assert settings.chunk_overlap == 200
    assert settings.reset_batch_size == 500
    assert settings.corpus_dir == Path("/srv/corpus")


def test_env_files_do_not_override_existing_values(tmp_path, monkeypatch) -> None:
    (tmp_path / ".env").write_text("CHUNK_SIZE=900\nCHUNK_OVERLAP=90\n", encoding="utf-8")
    monkeypatch.setenv("CHUNK_SIZE", "700")
    monkeypatch.delenv("CHUNK_OVERLAP", raising=False)

    load_env_files(tmp_path)
    settings = Settings.from_env()

    assert settings.chunk_size == 700
    assert settings.chunk_overlap == 90


def test_chunk_store_factory_honours_backend(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("STORE_PERSIST_PATH", str(tmp_path / "store.json"))
    reset_settings_cache()

    store = get_chunk_store()

    assert isinstance(store, InMemoryChunkStore)
    assert get_chunk_store() is store


def test_unknown_backend_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("CHUNK_STORE", "redis")
    reset_settings_cache()

    with pytest.raises(ValueError):
        get_chunk_store()
