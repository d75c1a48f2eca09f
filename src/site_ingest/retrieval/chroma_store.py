"""Chroma implementation of the retrieval backend."""

from __future__ import annotations

import logging
from typing import Any

import chromadb

from site_ingest.config import Settings
from site_ingest.ingestion.embedder import EmbeddingBatcher
from site_ingest.retrieval.base import VectorStoreBase
from site_ingest.retrieval.models import MetadataFilter

logger = logging.getLogger(__name__)

_OP_MAP = {
    "eq": "$eq",
    "ne": "$ne",
    "gt": "$gt",
    "gte": "$gte",
    "lt": "$lt",
    "lte": "$lte",
    "in": "$in",
    "nin": "$nin",
}


def build_chroma_where(filters: list[MetadataFilter]) -> dict[str, Any] | None:
    """Convert a list of :class:`MetadataFilter` to Chroma ``where`` syntax."""
    if not filters:
        return None

    clauses: list[dict[str, Any]] = []
    for f in filters:
        chroma_op = _OP_MAP.get(f.operator)
        if chroma_op is None:
            raise ValueError(f"Unsupported filter operator: {f.operator!r}")
        clauses.append({f.field: {chroma_op: f.value}})

    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed read access to the ingested collection.

    Parameters
    ----------
    settings:
        Connection details and collection name.
    embedder:
        Batcher used to embed text queries; the same model must have
        produced the stored vectors.
    client:
        Optional pre-built ``chromadb`` client.
    """

    def __init__(
        self,
        settings: Settings,
        embedder: EmbeddingBatcher | None = None,
        *,
        client: Any | None = None,
    ) -> None:
        super().__init__(settings.chroma_collection)
        self._client = client or chromadb.HttpClient(host=settings.chroma_host, port=settings.chroma_port)
        self._collection = self._client.get_collection(name=self.collection_name)
        self._embedder = embedder or EmbeddingBatcher(settings)

    def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[dict[str, Any]]:
        results = self._collection.query(
            query_embeddings=[query_embedding],
            n_results=k,
            where=build_chroma_where(filters) if filters else None,
            include=["documents", "metadatas", "distances"],
        )

        hits: list[dict[str, Any]] = []
        ids = (results.get("ids") or [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        for doc_id, content, meta, dist in zip(ids, docs, metas, distances):
            hits.append(
                {
                    "id": doc_id,
                    "content": content or "",
                    # Map distance to a 0-1 similarity score.
                    "score": 1.0 / (1.0 + dist),
                    "distance": dist,
                    "metadata": meta or {},
                }
            )
        return hits

    def similarity_search_by_text(
        self,
        query: str,
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[dict[str, Any]]:
        [embedding] = self._embedder.embed([query])
        return self.similarity_search(embedding, k=k, filters=filters)

    def count(self) -> int:
        return self._collection.count()
