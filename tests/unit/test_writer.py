"""Unit tests for the vector-store writer (in-memory Chroma fake)."""

from __future__ import annotations

import pytest

from conftest import FakeChromaClient
from site_ingest.config import Settings
from site_ingest.ingestion.chunker import chunk_page
from site_ingest.ingestion.models import PageDocument
from site_ingest.ingestion.writer import VectorStoreWriter, make_chunk_id

PAGE = PageDocument(
    url="https://example.com/about",
    title="About",
    description="About POPG",
    keywords="popg",
    content="POPG is a community token powering games and rewards. " * 100,
)


@pytest.fixture()
def writer(settings: Settings, chroma_client: FakeChromaClient) -> VectorStoreWriter:
    return VectorStoreWriter(settings, client=chroma_client)


def _vectors(n: int) -> list[list[float]]:
    return [[float(i), 0.0, 1.0] for i in range(n)]


def test_reset_creates_missing_collection(writer: VectorStoreWriter, chroma_client: FakeChromaClient) -> None:
    writer.reset_collection()
    collection = chroma_client.collections["test_content"]
    assert collection.metadata["description"] == "POPG website content for AI chatbot"
    assert collection.metadata["hnsw:space"] == "cosine"
    assert chroma_client.deleted == []


def test_reset_replaces_existing_collection(writer: VectorStoreWriter, chroma_client: FakeChromaClient) -> None:
    stale = chroma_client.create_collection("test_content")
    stale.upsert(ids=["old"], embeddings=[[0.0]], documents=["old"], metadatas=[{}])

    writer.reset_collection()

    assert chroma_client.deleted == ["test_content"]
    assert writer.count() == 0


def test_write_stores_documents_vectors_and_metadata(
    writer: VectorStoreWriter, chroma_client: FakeChromaClient
) -> None:
    writer.reset_collection()
    chunks = chunk_page(PAGE, page_index=3, chunk_size=1500, chunk_overlap=150)

    stored = writer.write(3, chunks, _vectors(len(chunks)), PAGE)

    assert stored == len(chunks)
    assert writer.count() == len(chunks)
    records = chroma_client.collections["test_content"].records
    first = records[make_chunk_id(3, 0, PAGE.url)]
    assert first["document"] == chunks[0].text
    assert first["embedding"] == [0.0, 0.0, 1.0]
    assert first["metadata"] == {
        "url": PAGE.url,
        "title": "About",
        "description": "About POPG",
        "keywords": "popg",
        "chunk_index": 0,
        "total_chunks": len(chunks),
        "page_index": 3,
        "chunk_size": len(chunks[0].text),
        "source_type": "html",
    }


def test_chunk_ids_are_unique_and_deterministic() -> None:
    ids = {make_chunk_id(p, c, f"https://example.com/{p}") for p in range(20) for c in range(50)}
    assert len(ids) == 1000
    assert make_chunk_id(1, 2, "https://example.com/") == make_chunk_id(1, 2, "https://example.com/")
    assert make_chunk_id(1, 2, "https://example.com/").startswith("page_1_chunk_2_")


def test_failed_batch_is_absorbed(writer: VectorStoreWriter, chroma_client: FakeChromaClient) -> None:
    writer.reset_collection()
    chroma_client.collections["test_content"].fail_on_calls = {1}
    chunks = chunk_page(PAGE, page_index=0, chunk_size=1500, chunk_overlap=150)

    assert writer.write(0, chunks[:2], _vectors(2), PAGE) == 0
    assert writer.write(0, chunks[2:], _vectors(len(chunks) - 2), PAGE) == len(chunks) - 2
    assert writer.count() == len(chunks) - 2


def test_write_requires_reset(writer: VectorStoreWriter) -> None:
    with pytest.raises(RuntimeError, match="reset_collection"):
        writer.write(0, [], [], PAGE)


def test_vector_count_mismatch_is_rejected(writer: VectorStoreWriter) -> None:
    writer.reset_collection()
    chunks = chunk_page(PAGE, page_index=0)
    with pytest.raises(ValueError, match="vectors for"):
        writer.write(0, chunks, _vectors(len(chunks) - 1), PAGE)


def test_health_check(settings: Settings) -> None:
    assert VectorStoreWriter(settings, client=FakeChromaClient()).health_check()
    assert not VectorStoreWriter(settings, client=FakeChromaClient(reachable=False)).health_check()


def test_count_is_zero_before_first_ingestion(writer: VectorStoreWriter, chroma_client: FakeChromaClient) -> None:
    assert chroma_client.collections == {}
    assert writer.count() == 0
