"""Ingestion configuration loaded from environment / ``.env``.

A :class:`Settings` value is built once by the entry point and passed
explicitly to every component; nothing reads configuration from module
state.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Every tunable of one ingestion run, populated from env vars or .env file."""

    # Crawl scope
    seed_urls: list[str] = Field(
        default=[
            "https://popg.com",
            "https://pop.vip",
            "https://popg.com/assets/documents/litepapers/popg-litepaper-v1.8.pdf",
            "https://docs.google.com/spreadsheets/d/12HQRVGa1d7O-zs7AH5PDhvnEaJO9jNIhJh9i7LHBa9k/htmlview#gid=0",
        ],
        description="Starting URLs, crawled breadth-first at depth 0",
    )
    allowed_domains: list[str] = Field(
        default=["popg.com", "pop.vip", "docs.google.com"],
        description="Hosts (and their subdomains) the crawler may follow",
    )
    max_depth: int = Field(default=3, ge=0)
    max_pages: int = Field(default=100, ge=1)
    crawl_delay_seconds: float = Field(default=0.5, ge=0, description="Politeness delay between fetches")

    # Fetching
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    user_agent: str = DEFAULT_USER_AGENT
    min_content_chars: int = Field(default=200, ge=0)
    max_content_chars: int = Field(default=100_000, gt=0)

    # Binary documents
    pdf_enabled: bool = True
    pdf_max_bytes: int = Field(default=10 * 1024 * 1024, gt=0)

    # Chunking
    chunk_size: int = 1500
    chunk_overlap: int = 150
    min_chunk_chars: int = Field(default=100, ge=0)
    max_chunks_per_page: int = Field(default=1000, gt=0)

    # Embedding
    openai_api_key: str = Field(default="", description="OpenAI API key (or dummy value for a compatible server)")
    openai_base_url: str = Field(
        default="",
        description="Base URL of an OpenAI-compatible embeddings API. Leave empty to use OpenAI cloud.",
    )
    embedding_model: str = "text-embedding-ada-002"
    embedding_price_per_million_chars: float = 0.1
    embedding_batch_size: int = Field(default=15, gt=0, description="Chunks embedded and stored together")
    embedding_max_batch_items: int = Field(default=100, gt=0)
    embedding_max_batch_chars: int = Field(default=8000, gt=0)
    embedding_batch_delay_seconds: float = Field(default=0.1, ge=0)
    embedding_item_delay_seconds: float = Field(default=0.2, ge=0)
    embedding_rate_limit_cooldown_seconds: float = Field(default=5.0, ge=0)
    embedding_max_attempts: int = Field(default=3, ge=1)

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "popg_content"
    chroma_collection_description: str = "POPG website content for AI chatbot"
    chroma_distance_metric: str = "cosine"

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}
