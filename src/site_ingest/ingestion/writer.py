"""Vector-store writer: rebuilds the Chroma collection and upserts chunk batches.

Every run starts from an empty collection: :meth:`VectorStoreWriter.reset_collection`
drops whatever a previous run left behind and creates the collection
afresh. Batches are then written with one upsert each; a failed batch is
logged and skipped so the rest of the run still lands.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any

import chromadb
from chromadb.errors import ChromaError

from site_ingest.config import Settings
from site_ingest.ingestion.models import Chunk, EmbeddingRecord, PageDocument

logger = logging.getLogger(__name__)


def make_chunk_id(page_index: int, chunk_index: int, url: str) -> str:
    """Deterministic upsert key: ``page_<p>_chunk_<c>_<url digest>``."""
    digest = hashlib.sha256(url.encode("utf-8")).hexdigest()[:12]
    return f"page_{page_index}_chunk_{chunk_index}_{digest}"


def chunk_metadata(chunk: Chunk, page: PageDocument) -> dict[str, Any]:
    """Flat metadata stored next to a chunk (Chroma accepts str/int/float/bool only)."""
    return {
        "url": page.url,
        "title": page.title,
        "description": page.description,
        "keywords": page.keywords,
        "chunk_index": chunk.chunk_index,
        "total_chunks": chunk.total_chunks,
        "page_index": chunk.page_index,
        "chunk_size": len(chunk.text),
        "source_type": "pdf" if page.is_binary else "html",
    }


class VectorStoreWriter:
    """Owns the destination collection for one ingestion run.

    Parameters
    ----------
    settings:
        Run configuration (Chroma host/port, collection name and metadata).
    client:
        A ``chromadb`` client. When *None*, an ``HttpClient`` is created
        from *settings*.
    """

    def __init__(self, settings: Settings, client: Any | None = None) -> None:
        if client is None:
            client = chromadb.HttpClient(host=settings.chroma_host, port=settings.chroma_port)
        self._client = client
        self._settings = settings
        self.collection_name = settings.chroma_collection
        self._collection: Any | None = None

    def health_check(self) -> bool:
        """Return ``True`` when the vector store answers a heartbeat."""
        try:
            beat = self._client.heartbeat()
        except Exception:
            logger.warning("Chroma heartbeat failed", exc_info=True)
            return False
        logger.info("Chroma heartbeat: %s", beat)
        return True

    def reset_collection(self) -> None:
        """Delete the collection if present, then create it empty."""
        name = self.collection_name
        try:
            self._client.delete_collection(name=name)
            logger.info("Deleted existing collection %r", name)
        except (ValueError, ChromaError):
            logger.info("Collection %r does not exist yet", name)

        self._collection = self._client.create_collection(
            name=name,
            metadata={
                "description": self._settings.chroma_collection_description,
                "hnsw:space": self._settings.chroma_distance_metric,
            },
        )
        logger.info("Created collection %r", name)

    def build_records(
        self,
        page_index: int,
        chunks: list[Chunk],
        vectors: list[list[float]],
    ) -> list[EmbeddingRecord]:
        if len(chunks) != len(vectors):
            raise ValueError(f"Got {len(vectors)} vectors for {len(chunks)} chunks")
        return [
            EmbeddingRecord(
                chunk=chunk,
                vector=vector,
                id=make_chunk_id(page_index, chunk.chunk_index, chunk.source_url),
            )
            for chunk, vector in zip(chunks, vectors)
        ]

    def write(
        self,
        page_index: int,
        chunks: list[Chunk],
        vectors: list[list[float]],
        page: PageDocument,
    ) -> int:
        """Upsert one batch of a page's chunks; return how many were stored.

        A store failure is logged and reported as ``0`` stored records.
        """
        if self._collection is None:
            raise RuntimeError("reset_collection() must be called before write()")
        if not chunks:
            return 0

        records = self.build_records(page_index, chunks, vectors)
        try:
            self._collection.upsert(
                ids=[r.id for r in records],
                embeddings=[r.vector for r in records],
                documents=[r.chunk.text for r in records],
                metadatas=[chunk_metadata(r.chunk, page) for r in records],
            )
        except Exception:
            logger.exception(
                "Failed to store %d chunks of page %d (%s)", len(records), page_index, page.url
            )
            return 0

        logger.info(
            "Stored chunks %d-%d of page %d",
            records[0].chunk.chunk_index,
            records[-1].chunk.chunk_index,
            page_index,
        )
        return len(records)

    def count(self) -> int:
        """Number of records currently in the collection; ``0`` if it does not exist yet."""
        collection = self._collection
        if collection is None:
            try:
                collection = self._client.get_collection(name=self.collection_name)
            except (ValueError, ChromaError):
                logger.info("Collection %r does not exist yet", self.collection_name)
                return 0
        return collection.count()
