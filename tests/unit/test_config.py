"""Settings defaults and environment overrides."""

from __future__ import annotations

import pytest

from site_ingest.config import Settings


def test_defaults_match_production_site() -> None:
    s = Settings(_env_file=None)
    assert s.allowed_domains == ["popg.com", "pop.vip", "docs.google.com"]
    assert s.seed_urls[0] == "https://popg.com"
    assert (s.max_depth, s.max_pages) == (3, 100)
    assert (s.chunk_size, s.chunk_overlap) == (1500, 150)
    assert s.embedding_batch_size == 15
    assert s.chroma_collection == "popg_content"
    assert s.chroma_distance_metric == "cosine"


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MAX_PAGES", "7")
    monkeypatch.setenv("CHROMA_PORT", "9000")
    monkeypatch.setenv("ALLOWED_DOMAINS", '["example.org"]')
    monkeypatch.setenv("PDF_ENABLED", "false")

    s = Settings(_env_file=None)

    assert s.max_pages == 7
    assert s.chroma_port == 9000
    assert s.allowed_domains == ["example.org"]
    assert s.pdf_enabled is False


def test_env_file_is_read(tmp_path) -> None:
    env = tmp_path / ".env"
    env.write_text("CHROMA_COLLECTION=staging_content\nSOMETHING_UNRELATED=1\n")
    assert Settings(_env_file=env).chroma_collection == "staging_content"


def test_rejects_zero_page_ceiling() -> None:
    with pytest.raises(ValueError):
        Settings(_env_file=None, max_pages=0)
