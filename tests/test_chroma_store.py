import pytest

from docchat.errors import ChunkStoreUnavailableError
from docchat.models import Document
from docchat.store.base import CHUNKS_COLLECTION, DOCUMENTS_COLLECTION, ChunkStore
from docchat.store.chroma_store import ChromaChunkStore

from conftest import FakeEmbeddingModel, make_chunk


@pytest.fixture
def embedding_model() -> FakeEmbeddingModel:
    return FakeEmbeddingModel()


@pytest.fixture
def chroma_store(tmp_path, fake_chroma_client, embedding_model) -> ChromaChunkStore:
    return ChromaChunkStore(tmp_path / "chroma", client=fake_chroma_client, embedding_model=embedding_model)


def test_creates_both_collections(chroma_store, fake_chroma_client) -> None:
    assert isinstance(chroma_store, ChunkStore)
    assert set(fake_chroma_client.collections) == {CHUNKS_COLLECTION, DOCUMENTS_COLLECTION}
    assert fake_chroma_client.collections[CHUNKS_COLLECTION].metadata == {"hnsw:space": "cosine"}


def test_document_round_trip(chroma_store) -> None:
    stored = chroma_store.add_document(Document(filename="guide.pdf", title="Guide", total_pages=3))

    loaded = chroma_store.get_document_by_id(stored.id)

    assert loaded is not None
    assert (loaded.title, loaded.total_pages) == ("Guide", 3)
    assert chroma_store.get_document_by_id("") is None
    assert chroma_store.get_document_by_id("missing") is None


def test_chunks_keep_keywords_and_order(chroma_store, fake_chroma_client, embedding_model) -> None:
    chroma_store.add_document(Document(id="doc", filename="doc.pdf", title="doc"))
    chroma_store.add_chunks(
        [
            make_chunk("doc", 1, "second", page=2, keywords=["둘째"]),
            make_chunk("doc", 0, "first", page=1, keywords=["첫째", "Alpha"]),
        ]
    )

    chunks = chroma_store.get_chunks_by_document("doc")

    assert [chunk.content for chunk in chunks] == ["first", "second"]
    assert chunks[0].keywords == frozenset({"첫째", "Alpha"})
    assert chunks[1].page == 2
    stored_metadata = fake_chroma_client.collections[CHUNKS_COLLECTION].records["doc-c0"]["metadata"]
    assert isinstance(stored_metadata["keywords"], str)
    assert ["second", "first"] in embedding_model.calls


def test_search_embeds_query(chroma_store, embedding_model) -> None:
    chroma_store.add_document(Document(id="doc", filename="doc.pdf", title="doc"))
    chroma_store.add_chunks([make_chunk("doc", 0, "first"), make_chunk("doc", 1, "second")])

    results = chroma_store.search_chunks("question", k=5)

    assert [chunk.id for chunk in results] == ["doc-c0", "doc-c1"]
    assert embedding_model.calls[-1] == ["question"]
    assert chroma_store.search_chunks("", k=5) == []


def test_delete_document_removes_its_chunks(chroma_store) -> None:
    chroma_store.add_document(Document(id="doc", filename="doc.pdf", title="doc"))
    chroma_store.add_chunks([make_chunk("doc", 0, "first"), make_chunk("doc", 1, "second")])

    assert chroma_store.delete_document("doc") == 2
    assert chroma_store.list_chunk_ids() == []
    assert chroma_store.list_document_ids() == []


def test_backend_errors_surface_as_unavailable(chroma_store, fake_chroma_client) -> None:
    fake_chroma_client.collections[DOCUMENTS_COLLECTION].fail_with = RuntimeError("disk I/O error")

    with pytest.raises(ChunkStoreUnavailableError) as excinfo:
        chroma_store.get_all_documents()

    assert isinstance(excinfo.value.__cause__, RuntimeError)
