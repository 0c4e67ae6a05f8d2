import json

import pytest

from docchat.models import Document
from docchat.store.base import ChunkStore
from docchat.store.memory_store import InMemoryChunkStore

from conftest import make_chunk, seed_document


def test_memory_store_satisfies_protocol(memory_store) -> None:
    assert isinstance(memory_store, ChunkStore)


def test_add_document_assigns_an_id(memory_store) -> None:
    stored = memory_store.add_document(Document(filename="a.pdf", title="a"))

    assert stored.id
    assert memory_store.get_document_by_id(stored.id) == stored


def test_update_of_unknown_document_raises(memory_store) -> None:
    with pytest.raises(KeyError):
        memory_store.update_document(Document(id="missing", filename="x", title="x"))


def test_chunks_are_returned_in_position_order(memory_store) -> None:
    memory_store.add_document(Document(id="doc", filename="doc.pdf", title="doc"))
    memory_store.add_chunks([make_chunk("doc", 2, "third"), make_chunk("doc", 0, "first"), make_chunk("doc", 1, "second")])

    contents = [chunk.content for chunk in memory_store.get_chunks_by_document("doc")]

    assert contents == ["first", "second", "third"]


def test_search_ranks_by_matching_terms(memory_store) -> None:
    memory_store.add_document(Document(id="doc", filename="doc.pdf", title="doc"))
    memory_store.add_chunks(
        [
            make_chunk("doc", 0, "consent only"),
            make_chunk("doc", 1, "consent and retention"),
            make_chunk("doc", 2, "unrelated", keywords=["Retention"]),
        ]
    )

    results = memory_store.search_chunks("Consent retention", k=2)

    assert [chunk.id for chunk in results] == ["doc-c1", "doc-c0"]
    assert memory_store.search_chunks("   ") == []


def test_delete_document_cascades_to_chunks(memory_store) -> None:
    seed_document(memory_store, "a", ["one", "two"])
    seed_document(memory_store, "b", ["three"])

    removed = memory_store.delete_document("a")

    assert removed == 2
    assert memory_store.list_document_ids() == ["b"]
    assert [chunk.document_id for chunk in memory_store.sample_chunks(10)] == ["b"]


def test_persistence_round_trip(tmp_path) -> None:
    path = tmp_path / "store" / "corpus.json"
    store = InMemoryChunkStore(path)
    seed_document(store, "doc", ["제1조 목적"], pages=[2], total_pages=5)

    payload = json.loads(path.read_text(encoding="utf-8"))
    reloaded = InMemoryChunkStore(path)

    assert set(payload) == {"pdf_documents", "pdf_chunks"}
    assert reloaded.get_document_by_id("doc").total_pages == 5
    [chunk] = reloaded.get_chunks_by_document("doc")
    assert chunk.content == "제1조 목적"
    assert chunk.page == 2


def test_corrupt_persistence_file_starts_empty(tmp_path, caplog) -> None:
    path = tmp_path / "corpus.json"
    path.write_text("{not json", encoding="utf-8")

    store = InMemoryChunkStore(path)

    assert store.list_document_ids() == []
    assert "Failed to load chunk store" in caplog.text
