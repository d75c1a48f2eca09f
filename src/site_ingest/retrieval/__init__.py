"""
Retrieval: nearest-neighbour lookup over the ingested collection.

The chat front end consumes the collection that ingestion produces; this
package is the read side of that contract.

Public surface
--------------
- :class:`SemanticRetriever`: search returning results with citations.
- :class:`VectorStoreBase`: abstract backend.
- :class:`ChromaVectorStore`: Chroma backend.
- :class:`Citation`, :class:`RetrievalResult`, :class:`MetadataFilter`: data models.
"""

from site_ingest.retrieval.base import VectorStoreBase
from site_ingest.retrieval.models import Citation, MetadataFilter, RetrievalResult
from site_ingest.retrieval.retriever import SemanticRetriever

__all__ = [
    "Citation",
    "ChromaVectorStore",
    "MetadataFilter",
    "RetrievalResult",
    "SemanticRetriever",
    "VectorStoreBase",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorStore":
        from site_ingest.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
