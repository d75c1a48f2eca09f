"""End-to-end ingestion run: crawl → chunk → embed → write."""

from __future__ import annotations

import logging
import time

from site_ingest.config import Settings
from site_ingest.ingestion.chunker import chunk_page
from site_ingest.ingestion.crawler import CrawlOrchestrator, PageExtractor
from site_ingest.ingestion.embedder import EmbeddingBatcher
from site_ingest.ingestion.extractor import ContentExtractor
from site_ingest.ingestion.models import IngestionSummary, PageDocument
from site_ingest.ingestion.urls import host_of
from site_ingest.ingestion.writer import VectorStoreWriter

logger = logging.getLogger(__name__)


class IngestionError(RuntimeError):
    """The run as a whole cannot produce a meaningful collection."""


def documents_by_host(pages: list[PageDocument]) -> dict[str, dict[str, int]]:
    """Count documents per host, split into ``html`` and ``pdf``."""
    counts: dict[str, dict[str, int]] = {}
    for page in pages:
        bucket = counts.setdefault(host_of(page.url), {"html": 0, "pdf": 0})
        bucket["pdf" if page.is_binary else "html"] += 1
    return counts


def run_ingestion(
    settings: Settings,
    *,
    seed_urls: list[str] | None = None,
    extractor: PageExtractor | None = None,
    batcher: EmbeddingBatcher | None = None,
    writer: VectorStoreWriter | None = None,
) -> IngestionSummary:
    """Crawl the configured site(s) and rebuild the collection from scratch.

    Parameters
    ----------
    settings:
        Run configuration.
    seed_urls:
        Overrides ``settings.seed_urls`` when given.
    extractor, batcher, writer:
        Collaborators; each defaults to the real implementation built
        from *settings*.

    Raises
    ------
    IngestionError
        The vector store is unreachable, or no page yielded content.
    site_ingest.ingestion.embedder.EmbeddingError
        Embedding failed in a way retries and fallbacks could not absorb.
    """
    t0 = time.monotonic()
    writer = writer or VectorStoreWriter(settings)
    batcher = batcher or EmbeddingBatcher(settings)
    extractor = extractor or ContentExtractor(settings)

    if not writer.health_check():
        raise IngestionError(
            f"Vector store at {settings.chroma_host}:{settings.chroma_port} is not reachable"
        )

    crawler = CrawlOrchestrator(settings, extractor)
    pages = crawler.crawl(seed_urls)
    if not pages:
        raise IngestionError("No content was scraped from any of the seed URLs")

    writer.reset_collection()

    total_chunks = 0
    failed_batches = 0
    embedded_chars = 0
    group = settings.embedding_batch_size
    for page_index, page in enumerate(pages):
        logger.info("[page %d/%d] %s (%d chars)", page_index + 1, len(pages), page.title, len(page.content))
        chunks = chunk_page(
            page,
            page_index,
            settings.chunk_size,
            settings.chunk_overlap,
            min_chunk_chars=settings.min_chunk_chars,
            max_chunks=settings.max_chunks_per_page,
        )
        if not chunks:
            logger.info("No chunks for %s, skipping", page.url)
            continue

        for start in range(0, len(chunks), group):
            batch = chunks[start : start + group]
            texts = [c.text for c in batch]
            vectors = batcher.embed(texts)
            embedded_chars += sum(len(t) for t in texts)

            stored = writer.write(page_index, batch, vectors, page)
            if stored:
                total_chunks += stored
            else:
                failed_batches += 1

    summary = IngestionSummary(
        collection_name=writer.collection_name,
        total_pages=len(pages),
        total_chunks=total_chunks,
        failed_batches=failed_batches,
        crawl=crawler.stats,
        documents_by_host=documents_by_host(pages),
        estimated_cost=embedded_chars / 1_000_000 * settings.embedding_price_per_million_chars,
        elapsed_seconds=round(time.monotonic() - t0, 2),
    )
    logger.info(
        "Stored %d chunks from %d documents in %r (%d failed batches, ~$%.6f, %.1fs)",
        summary.total_chunks,
        summary.total_pages,
        summary.collection_name,
        summary.failed_batches,
        summary.estimated_cost,
        summary.elapsed_seconds,
    )
    return summary
