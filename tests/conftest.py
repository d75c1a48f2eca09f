"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import math
from typing import Any

import pytest

from site_ingest.config import Settings


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── In-memory stand-ins for external services ──────────────────────────


class FakeCollection:
    """Minimal in-memory Chroma collection."""

    def __init__(self, name: str, metadata: dict[str, Any] | None = None) -> None:
        self.name = name
        self.metadata = metadata or {}
        self.records: dict[str, dict[str, Any]] = {}
        self.upsert_calls = 0
        self.fail_on_calls: set[int] = set()

    def upsert(self, *, ids, embeddings, documents, metadatas) -> None:
        self.upsert_calls += 1
        if self.upsert_calls in self.fail_on_calls:
            raise RuntimeError("simulated store failure")
        assert len(ids) == len(embeddings) == len(documents) == len(metadatas)
        for i, emb, doc, meta in zip(ids, embeddings, documents, metadatas):
            self.records[i] = {"embedding": emb, "document": doc, "metadata": meta}

    add = upsert

    def count(self) -> int:
        return len(self.records)

    def query(self, *, query_embeddings, n_results, where=None, include=None) -> dict[str, Any]:
        [query] = query_embeddings
        ranked = sorted(
            self.records.items(),
            key=lambda item: math.dist(query, item[1]["embedding"]),
        )[:n_results]
        return {
            "ids": [[rid for rid, _ in ranked]],
            "documents": [[rec["document"] for _, rec in ranked]],
            "metadatas": [[rec["metadata"] for _, rec in ranked]],
            "distances": [[math.dist(query, rec["embedding"]) for _, rec in ranked]],
        }


class FakeChromaClient:
    """Minimal in-memory Chroma client."""

    def __init__(self, *, reachable: bool = True) -> None:
        self.collections: dict[str, FakeCollection] = {}
        self.reachable = reachable
        self.deleted: list[str] = []

    def heartbeat(self) -> int:
        if not self.reachable:
            raise ConnectionError("chroma down")
        return 1

    def delete_collection(self, name: str) -> None:
        if name not in self.collections:
            raise ValueError(f"Collection {name} does not exist.")
        del self.collections[name]
        self.deleted.append(name)

    def create_collection(self, name: str, metadata: dict[str, Any] | None = None) -> FakeCollection:
        if name in self.collections:
            raise ValueError(f"Collection {name} already exists.")
        self.collections[name] = FakeCollection(name, metadata)
        return self.collections[name]

    def get_collection(self, name: str) -> FakeCollection:
        if name not in self.collections:
            raise ValueError(f"Collection {name} does not exist.")
        return self.collections[name]


class FakeEmbeddingClient:
    """Deterministic embeddings: ``[len(text), first char code, 1.0]``.

    *script* is a list of exceptions (or ``None`` for success) consumed
    one per request, letting tests stage rate limits and rejections.
    """

    def __init__(self, script: list[Exception | None] | None = None) -> None:
        self.calls: list[list[str]] = []
        self._script = list(script or [])

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        if self._script:
            outcome = self._script.pop(0)
            if outcome is not None:
                raise outcome
        return [vector_for(t) for t in texts]


def vector_for(text: str) -> list[float]:
    return [float(len(text)), float(ord(text[0])) if text else 0.0, 1.0]


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        seed_urls=["https://example.com"],
        allowed_domains=["example.com"],
        max_depth=1,
        max_pages=5,
        crawl_delay_seconds=0,
        openai_api_key="test-key",
        embedding_batch_delay_seconds=0,
        embedding_item_delay_seconds=0,
        embedding_rate_limit_cooldown_seconds=0,
        chroma_collection="test_content",
    )


@pytest.fixture()
def chroma_client() -> FakeChromaClient:
    return FakeChromaClient()


@pytest.fixture()
def embedding_client() -> FakeEmbeddingClient:
    return FakeEmbeddingClient()
