"""Site ingestion: crawl a website, embed its content, and load it into Chroma."""

__version__ = "0.1.0"
