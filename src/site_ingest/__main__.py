"""Command-line entry point.

Run a full ingestion (rebuilds the collection)::

    python -m site_ingest
    python -m site_ingest --seed https://popg.com --max-pages 20

Check the vector store, or query what is already there::

    python -m site_ingest --check
    python -m site_ingest --query "What is POPG?"
"""

from __future__ import annotations

import argparse
import logging
import sys

from chromadb.errors import ChromaError

from site_ingest.config import Settings
from site_ingest.ingestion.embedder import EmbeddingError
from site_ingest.ingestion.pipeline import IngestionError, run_ingestion
from site_ingest.ingestion.writer import VectorStoreWriter

logger = logging.getLogger("site_ingest")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="site-ingest",
        description="Crawl a website and rebuild its Chroma knowledge-base collection",
    )
    parser.add_argument("--seed", action="append", dest="seeds", help="Seed URL (repeatable)")
    parser.add_argument("--max-pages", type=int, help="Override the page ceiling")
    parser.add_argument("--max-depth", type=int, help="Override the crawl depth")
    parser.add_argument("--check", action="store_true", help="Only ping the vector store and report its size")
    parser.add_argument("--query", help="Search the current collection instead of ingesting")
    parser.add_argument("-k", type=int, default=5, help="Results returned by --query")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    overrides = {}
    if args.max_pages is not None:
        overrides["max_pages"] = args.max_pages
    if args.max_depth is not None:
        overrides["max_depth"] = args.max_depth
    settings = Settings(**overrides)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.check:
        writer = VectorStoreWriter(settings)
        if not writer.health_check():
            logger.error("Vector store at %s:%d is not reachable", settings.chroma_host, settings.chroma_port)
            return 1
        logger.info("Collection %r holds %d chunks", settings.chroma_collection, writer.count())
        return 0

    if args.query:
        from site_ingest.retrieval.chroma_store import ChromaVectorStore
        from site_ingest.retrieval.retriever import SemanticRetriever

        try:
            retriever = SemanticRetriever(ChromaVectorStore(settings), default_k=args.k)
            results = retriever.search(args.query)
        except (ValueError, ChromaError) as exc:
            logger.error("Collection %r is not available: %s", settings.chroma_collection, exc)
            return 1
        except EmbeddingError as exc:
            logger.error("Could not embed the query: %s", exc)
            return 1
        for result in results:
            print(result)
        return 0

    try:
        summary = run_ingestion(settings, seed_urls=args.seeds)
    except (IngestionError, EmbeddingError) as exc:
        logger.error("Ingestion failed: %s", exc)
        return 1

    for host, counts in sorted(summary.documents_by_host.items()):
        logger.info("  %s: %d HTML pages, %d PDF documents", host, counts["html"], counts["pdf"])
    logger.info("Collection %r ready: %d chunks", summary.collection_name, summary.total_chunks)
    return 0


if __name__ == "__main__":
    sys.exit(main())
