"""Abstract base class for vector-store read backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from site_ingest.retrieval.models import MetadataFilter


class VectorStoreBase(ABC):
    """Backend-agnostic query interface over one collection.

    Parameters
    ----------
    collection_name:
        Logical name of the collection.
    """

    def __init__(self, collection_name: str) -> None:
        self.collection_name = collection_name

    @abstractmethod
    def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[dict[str, Any]]:
        """Return the top-*k* chunks nearest to *query_embedding*.

        Each result dict contains ``"id"``, ``"content"``, ``"score"``
        (higher = more similar), ``"distance"`` and ``"metadata"``.
        """
        ...

    @abstractmethod
    def similarity_search_by_text(
        self,
        query: str,
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[dict[str, Any]]:
        """Embed *query* and delegate to :meth:`similarity_search`."""
        ...

    @abstractmethod
    def count(self) -> int:
        """Number of chunks in the collection."""
        ...
