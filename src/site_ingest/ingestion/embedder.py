"""Embedding batcher: turns chunk texts into vectors through an external API.

Texts are grouped into requests that respect both an item-count and an
aggregate-character limit. A rate-limited request is retried whole after
a cooldown; a malformed multi-item request is re-issued one item at a
time. Output vectors are always in input order.
"""

from __future__ import annotations

import logging
import time

from site_ingest.config import Settings
from site_ingest.ingestion.embedding_client import (
    EmbeddingBadRequestError,
    EmbeddingClient,
    EmbeddingClientError,
    EmbeddingRateLimitError,
    OpenAIEmbeddingClient,
)

logger = logging.getLogger(__name__)


class EmbeddingError(RuntimeError):
    """Embedding could not be completed; the ingestion run cannot continue."""


def partition_texts(texts: list[str], *, max_items: int, max_chars: int) -> list[list[str]]:
    """Greedily group *texts* into batches within *max_items* and *max_chars*.

    A single text longer than *max_chars* still gets a batch of its own.
    """
    batches: list[list[str]] = []
    current: list[str] = []
    current_chars = 0
    for text in texts:
        if current and (len(current) >= max_items or current_chars + len(text) > max_chars):
            batches.append(current)
            current, current_chars = [], 0
        current.append(text)
        current_chars += len(text)
    if current:
        batches.append(current)
    return batches


class EmbeddingBatcher:
    """Length- and order-preserving ``embed`` over an :class:`EmbeddingClient`.

    Parameters
    ----------
    settings:
        Run configuration (batch limits, delays, retry budget, model).
    client:
        Backend issuing a single embeddings request. Defaults to an
        :class:`OpenAIEmbeddingClient` built from *settings*.
    """

    def __init__(self, settings: Settings, client: EmbeddingClient | None = None) -> None:
        if client is None:
            client = OpenAIEmbeddingClient(
                api_key=settings.openai_api_key,
                model=settings.embedding_model,
                base_url=settings.openai_base_url,
                timeout=settings.request_timeout_seconds,
            )
        self._client = client
        self._settings = settings
        self.requests_issued = 0

    def embed(self, texts: list[str]) -> list[list[float]]:
        """Return one vector per text, in the same order."""
        if not texts:
            return []

        s = self._settings
        total_chars = sum(len(t) for t in texts)
        t0 = time.monotonic()

        fits_one_request = (
            len(texts) <= s.embedding_max_batch_items and total_chars < s.embedding_max_batch_chars
        )
        if len(texts) == 1 or fits_one_request:
            logger.info("Embedding %d text(s), %d chars in one request", len(texts), total_chars)
            vectors = self._embed_batch(texts)
        else:
            batches = partition_texts(
                texts,
                max_items=s.embedding_max_batch_items,
                max_chars=s.embedding_max_batch_chars,
            )
            logger.info("Embedding %d texts, %d chars in %d sub-batches", len(texts), total_chars, len(batches))
            vectors = []
            for number, batch in enumerate(batches, start=1):
                if number > 1:
                    time.sleep(s.embedding_batch_delay_seconds)
                logger.debug("  sub-batch %d/%d: %d texts", number, len(batches), len(batch))
                vectors.extend(self._embed_batch(batch))

        logger.info("Embedded %d texts in %.2fs", len(vectors), time.monotonic() - t0)
        return vectors

    # -- internals ------------------------------------------------------------

    def _embed_batch(self, batch: list[str]) -> list[list[float]]:
        try:
            return self._request(batch)
        except EmbeddingBadRequestError as exc:
            if len(batch) == 1:
                raise EmbeddingError(f"Embedding request rejected: {exc}") from exc
            logger.warning("Batch of %d rejected (%s); falling back to individual requests", len(batch), exc)
            return self._embed_individually(batch)

    def _embed_individually(self, batch: list[str]) -> list[list[float]]:
        vectors: list[list[float]] = []
        for i, text in enumerate(batch, start=1):
            logger.debug("  individual %d/%d", i, len(batch))
            try:
                vectors.extend(self._request([text]))
            except EmbeddingBadRequestError as exc:
                logger.error("Individual embedding %d/%d failed: %s", i, len(batch), exc)
                raise EmbeddingError(f"Embedding item {i} of {len(batch)} rejected: {exc}") from exc
            if i < len(batch):
                time.sleep(self._settings.embedding_item_delay_seconds)
        return vectors

    def _request(self, batch: list[str]) -> list[list[float]]:
        """Issue one request, retrying the same batch while rate-limited."""
        attempts = self._settings.embedding_max_attempts
        cooldown = self._settings.embedding_rate_limit_cooldown_seconds
        attempt = 0
        while True:
            attempt += 1
            self.requests_issued += 1
            try:
                vectors = self._client.embed_texts(batch)
                break
            except EmbeddingRateLimitError as exc:
                if attempt >= attempts:
                    raise EmbeddingError(f"Still rate limited after {attempts} attempts") from exc
                logger.warning("Rate limited (attempt %d/%d), waiting %.1fs", attempt, attempts, cooldown)
                time.sleep(cooldown)
            except EmbeddingBadRequestError:
                raise
            except EmbeddingClientError as exc:
                raise EmbeddingError(f"Embedding request failed: {exc}") from exc

        if len(vectors) != len(batch):
            raise EmbeddingError(f"Expected {len(batch)} vectors, got {len(vectors)}")
        return vectors
