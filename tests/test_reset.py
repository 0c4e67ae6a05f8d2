import pytest

from docchat.errors import BatchDeleteError, ChunkStoreUnavailableError
from docchat.ingest.reset import MAX_BATCH_SIZE, CorpusResetter
from docchat.store.memory_store import InMemoryChunkStore

from conftest import seed_document


class FlakyStore(InMemoryChunkStore):
    def __init__(self, failures: int) -> None:
        super().__init__()
        self.remaining_failures = failures
        self.chunk_batches: list[list[str]] = []

    def delete_chunks(self, chunk_ids):
        if self.remaining_failures > 0:
            self.remaining_failures -= 1
            raise ChunkStoreUnavailableError("transient failure")
        self.chunk_batches.append(list(chunk_ids))
        return super().delete_chunks(chunk_ids)


def _seed(store: InMemoryChunkStore, documents: int = 2, chunks_per_document: int = 5) -> None:
    for index in range(documents):
        seed_document(store, f"doc{index}", [f"content {n}" for n in range(chunks_per_document)])


def test_reset_deletes_chunks_then_documents_in_batches() -> None:
    store = FlakyStore(failures=0)
    _seed(store)
    sleeps: list[float] = []

    report = CorpusResetter(store, batch_size=3, inter_batch_delay=0.2, sleep=sleeps.append).reset()

    assert report.deleted_chunks == 10
    assert report.deleted_documents == 2
    assert [len(batch) for batch in store.chunk_batches] == [3, 3, 3, 1]
    assert sleeps == [0.2, 0.2, 0.2]
    assert store.list_chunk_ids() == []
    assert store.list_document_ids() == []


def test_reset_retries_with_exponential_backoff() -> None:
    store = FlakyStore(failures=2)
    _seed(store, documents=1, chunks_per_document=2)
    sleeps: list[float] = []

    report = CorpusResetter(store, batch_size=10, base_delay=1.0, sleep=sleeps.append).reset()

    assert sleeps == [1.0, 2.0]
    assert report.deleted_chunks == 2
    assert store.list_chunk_ids() == []


def test_reset_aborts_with_failed_batch_after_retries_exhausted() -> None:
    store = FlakyStore(failures=100)
    _seed(store, documents=1, chunks_per_document=4)
    sleeps: list[float] = []

    with pytest.raises(BatchDeleteError) as excinfo:
        CorpusResetter(store, batch_size=2, max_retries=3, base_delay=1.0, sleep=sleeps.append).reset()

    assert sleeps == [1.0, 2.0, 4.0]
    failed = excinfo.value.failed_batches
    assert len(failed) == 1
    assert failed[0].collection == "pdf_chunks"
    assert (failed[0].start, failed[0].end) == (0, 2)
    assert len(failed[0].ids) == 2
    assert "transient failure" in failed[0].error
    assert store.list_document_ids() == ["doc0"]


def test_reset_of_empty_store_is_a_no_op() -> None:
    report = CorpusResetter(InMemoryChunkStore(), sleep=lambda _: None).reset()

    assert (report.deleted_chunks, report.deleted_documents) == (0, 0)


def test_batch_size_is_capped() -> None:
    resetter = CorpusResetter(InMemoryChunkStore(), batch_size=10_000)

    assert resetter.batch_size == MAX_BATCH_SIZE
