"""Domain models flowing between the ingestion stages."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class FrontierEntry(BaseModel):
    """A URL waiting in the crawl frontier, tagged with its link distance from a seed."""

    model_config = ConfigDict(frozen=True)

    url: str
    depth: int = 0


class PageDocument(BaseModel):
    """Normalised text and metadata extracted from one fetched page or document.

    Attributes
    ----------
    url:
        The URL the content was fetched from.
    title, description, keywords:
        Page-level metadata copied onto every stored chunk.
    content:
        Whitespace-collapsed plain text, capped at the configured maximum.
    outbound_links:
        Absolute, de-duplicated, allowed-domain links in document order.
        Always empty for binary documents.
    is_binary:
        ``True`` for documents parsed from a byte stream (PDF).
    unit_count:
        Number of units (PDF pages) the text was extracted from; ``0`` for HTML.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    title: str = "Untitled"
    description: str = ""
    keywords: str = ""
    content: str
    outbound_links: tuple[str, ...] = ()
    is_binary: bool = False
    unit_count: int = 0


class Chunk(BaseModel):
    """A bounded span of a page's text, the unit of embedding and retrieval."""

    model_config = ConfigDict(frozen=True)

    text: str
    source_url: str
    source_title: str
    chunk_index: int
    total_chunks: int
    page_index: int


class EmbeddingRecord(BaseModel):
    """A chunk paired with its vector and its collection-wide upsert key."""

    chunk: Chunk
    vector: list[float]
    id: str


class CrawlStats(BaseModel):
    """Per-state counters for one crawl."""

    visited: int = 0
    extracted: int = 0
    skipped: int = 0
    failed: int = 0
    insufficient: int = 0


class IngestionSummary(BaseModel):
    """Outcome of one full ingestion run."""

    collection_name: str
    total_pages: int
    total_chunks: int
    failed_batches: int = 0
    crawl: CrawlStats = Field(default_factory=CrawlStats)
    documents_by_host: dict[str, dict[str, int]] = Field(default_factory=dict)
    estimated_cost: float = 0.0
    elapsed_seconds: float = 0.0
