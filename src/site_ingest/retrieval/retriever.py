"""Semantic retriever: metadata-aware search with citation tracking.

Usage::

    from site_ingest.retrieval.retriever import SemanticRetriever

    retriever = SemanticRetriever(store)
    for r in retriever.search("What is the POPG token supply?", k=5):
        print(r.citation.short_ref(), r.content[:80])
"""

from __future__ import annotations

import logging
from typing import Any

from site_ingest.retrieval.base import VectorStoreBase
from site_ingest.retrieval.models import Citation, MetadataFilter, RetrievalResult

logger = logging.getLogger(__name__)


class SemanticRetriever:
    """High-level retriever that wraps any :class:`VectorStoreBase`.

    Parameters
    ----------
    store:
        A concrete vector-store backend.
    default_k:
        Default number of results returned by :meth:`search`.
    score_threshold:
        Minimum similarity score; results below this are discarded.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        *,
        default_k: int = 5,
        score_threshold: float = 0.0,
    ) -> None:
        self._store = store
        self.default_k = default_k
        self.score_threshold = score_threshold

    def search(
        self,
        query: str,
        *,
        k: int | None = None,
        filters: list[MetadataFilter] | None = None,
    ) -> list[RetrievalResult]:
        """Run a semantic search and return ranked results with citations."""
        k = k or self.default_k
        raw_hits = self._store.similarity_search_by_text(query, k=k, filters=filters)
        return self._to_results(raw_hits)

    def search_by_embedding(
        self,
        embedding: list[float],
        *,
        k: int | None = None,
        filters: list[MetadataFilter] | None = None,
    ) -> list[RetrievalResult]:
        """Same as :meth:`search` but accepts a pre-computed embedding."""
        k = k or self.default_k
        raw_hits = self._store.similarity_search(embedding, k=k, filters=filters)
        return self._to_results(raw_hits)

    def _to_results(self, raw_hits: list[dict[str, Any]]) -> list[RetrievalResult]:
        results: list[RetrievalResult] = []
        for hit in raw_hits:
            score = hit.get("score")
            if score is not None and score < self.score_threshold:
                continue

            meta = hit.get("metadata", {})
            citation = Citation(
                document_id=hit.get("id"),
                url=meta.get("url", "unknown"),
                title=meta.get("title", ""),
                chunk_index=meta.get("chunk_index"),
                page_index=meta.get("page_index"),
                score=score,
                metadata=meta,
            )
            results.append(RetrievalResult(content=hit.get("content", ""), citation=citation))
        logger.debug("Kept %d of %d hits", len(results), len(raw_hits))
        return results
