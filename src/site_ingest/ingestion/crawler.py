"""Breadth-first crawl orchestrator.

The orchestrator owns the frontier (a FIFO of :class:`FrontierEntry`)
and the visited set for exactly one crawl. Each dequeued entry is either
skipped (already visited, too deep, or off-domain), or fetched through
the extractor and ends up extracted, insufficient, or failed. Links of
extracted HTML pages are enqueued one level deeper.

Fetches are strictly sequential with a politeness delay between them.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from typing import Protocol

import requests

from site_ingest.config import Settings
from site_ingest.ingestion.extractor import ExtractionError
from site_ingest.ingestion.models import CrawlStats, FrontierEntry, PageDocument
from site_ingest.ingestion.urls import host_of, is_allowed_domain, is_binary_document, normalize_url

logger = logging.getLogger(__name__)


class PageExtractor(Protocol):
    def extract(self, url: str) -> PageDocument | None: ...


class CrawlOrchestrator:
    """Drives one crawl over the configured seeds.

    Parameters
    ----------
    settings:
        Run configuration (depth/page limits, allowed domains, delay).
    extractor:
        Anything with ``extract(url) -> PageDocument | None``, usually a
        :class:`~site_ingest.ingestion.extractor.ContentExtractor`.
    """

    def __init__(self, settings: Settings, extractor: PageExtractor) -> None:
        self._settings = settings
        self._extractor = extractor
        self.frontier: deque[FrontierEntry] = deque()
        self.visited: set[str] = set()
        self._pending: set[str] = set()
        self.stats = CrawlStats()

    # -- frontier -------------------------------------------------------------

    def enqueue(self, url: str, depth: int) -> bool:
        """Add *url* at *depth* unless it is visited, already pending, or off-domain."""
        normalized = normalize_url(url)
        if normalized is None:
            return False
        if normalized in self.visited or normalized in self._pending:
            return False
        if not is_allowed_domain(normalized, self._settings.allowed_domains):
            return False
        self.frontier.append(FrontierEntry(url=normalized, depth=depth))
        self._pending.add(normalized)
        return True

    def _should_skip(self, entry: FrontierEntry) -> bool:
        return (
            entry.url in self.visited
            or entry.depth > self._settings.max_depth
            or not is_allowed_domain(entry.url, self._settings.allowed_domains)
        )

    # -- crawl loop -----------------------------------------------------------

    def crawl(self, seed_urls: list[str] | None = None) -> list[PageDocument]:
        """Crawl from *seed_urls* (default: configured seeds); return pages in BFS order."""
        s = self._settings
        seeds = list(seed_urls if seed_urls is not None else s.seed_urls)
        for seed in seeds:
            # Seeds bypass the domain check here; off-domain seeds are skipped on dequeue.
            normalized = normalize_url(seed)
            if normalized is None:
                logger.warning("Ignoring invalid seed URL %r", seed)
                continue
            if normalized not in self._pending:
                self.frontier.append(FrontierEntry(url=normalized, depth=0))
                self._pending.add(normalized)

        logger.info("Starting crawl of domains: %s", ", ".join(s.allowed_domains))
        logger.info("Seeds: %s", ", ".join(seeds))
        logger.info(
            "PDF processing: %s, max pages: %d, max depth: %d",
            "enabled" if s.pdf_enabled else "disabled",
            s.max_pages,
            s.max_depth,
        )

        pages: list[PageDocument] = []
        while self.frontier and len(self.visited) < s.max_pages:
            entry = self.frontier.popleft()
            self._pending.discard(entry.url)

            if self._should_skip(entry):
                self.stats.skipped += 1
                continue

            self.visited.add(entry.url)
            self.stats.visited += 1
            kind = "PDF" if is_binary_document(entry.url) else "HTML"
            logger.info(
                "[%s] [depth %d] [%s] processing page %d/%d",
                kind,
                entry.depth,
                host_of(entry.url),
                len(self.visited),
                s.max_pages,
            )

            page = self._fetch(entry)
            if page is not None:
                pages.append(page)
                self.stats.extracted += 1
                if page.is_binary:
                    logger.info("PDF processed: %d pages", page.unit_count)
                elif entry.depth < s.max_depth:
                    added = sum(self.enqueue(link, entry.depth + 1) for link in page.outbound_links)
                    logger.info(
                        "Found %d links (%d new), queue size: %d",
                        len(page.outbound_links),
                        added,
                        len(self.frontier),
                    )

            if self.frontier:
                time.sleep(s.crawl_delay_seconds)

        logger.info(
            "Crawl completed: %d documents extracted, %d visited, %d failed, %d skipped",
            self.stats.extracted,
            self.stats.visited,
            self.stats.failed,
            self.stats.skipped,
        )
        return pages

    def _fetch(self, entry: FrontierEntry) -> PageDocument | None:
        try:
            page = self._extractor.extract(entry.url)
        except (ExtractionError, requests.RequestException) as exc:
            logger.warning("Failed to scrape %s: %s", entry.url, exc)
            self.stats.failed += 1
            return None

        if page is None or len(page.content) < self._settings.min_content_chars:
            self.stats.insufficient += 1
            return None
        return page
