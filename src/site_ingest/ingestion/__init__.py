"""
Ingestion: crawling, extraction, chunking, embedding, and storage.

This package is the pipeline that turns a set of seed URLs into a
freshly rebuilt, queryable Chroma collection:

    crawl → extract → chunk → embed → write

Each stage lives in its own module and can be exercised on its own;
:func:`site_ingest.ingestion.pipeline.run_ingestion` wires them together.
"""
