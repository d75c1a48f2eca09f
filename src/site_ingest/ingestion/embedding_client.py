"""Embedding API adapter.

The batcher talks to an :class:`EmbeddingClient`; the OpenAI implementation
turns SDK errors into rate-limit, bad-request and generic failures so the
caller can pick its fallback. Retries are left to the caller.
"""

from __future__ import annotations

import logging
from typing import Protocol

import openai
from openai import OpenAI

logger = logging.getLogger(__name__)


class EmbeddingClientError(RuntimeError):
    """The embeddings request failed."""


class EmbeddingRateLimitError(EmbeddingClientError):
    """The API asked us to slow down (HTTP 429)."""


class EmbeddingBadRequestError(EmbeddingClientError):
    """The API rejected the input itself (HTTP 400)."""


class EmbeddingClient(Protocol):
    def embed_texts(self, texts: list[str]) -> list[list[float]]: ...


class OpenAIEmbeddingClient:
    """One embeddings request per call against an OpenAI-compatible API.

    When *base_url* is set the client targets that server instead of the
    OpenAI cloud; a dummy key (``"EMPTY"``) is sent if none is configured.
    The SDK's own retries are disabled: a 429 surfaces immediately as
    :class:`EmbeddingRateLimitError`.
    """

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str = "",
        timeout: float | None = None,
    ) -> None:
        kwargs: dict = {"api_key": api_key, "max_retries": 0}
        if timeout is not None:
            kwargs["timeout"] = timeout
        if base_url:
            logger.info("Using embeddings endpoint: %s", base_url)
            kwargs["base_url"] = base_url
            kwargs["api_key"] = api_key or "EMPTY"
        self._client = OpenAI(**kwargs)
        self._model = model

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        try:
            response = self._client.embeddings.create(
                model=self._model,
                input=texts,
                encoding_format="float",
            )
        except openai.RateLimitError as exc:
            raise EmbeddingRateLimitError(str(exc)) from exc
        except openai.BadRequestError as exc:
            raise EmbeddingBadRequestError(str(exc)) from exc
        except openai.OpenAIError as exc:
            raise EmbeddingClientError(str(exc)) from exc

        data = sorted(response.data, key=lambda item: item.index)
        vectors: list[list[float]] = []
        for item in data:
            if not item.embedding:
                raise EmbeddingClientError("Invalid embeddings payload: missing embedding vector")
            vectors.append([float(value) for value in item.embedding])

        if len(vectors) != len(texts):
            raise EmbeddingClientError(
                f"Invalid embeddings payload: expected {len(texts)} vectors, got {len(vectors)}"
            )

        return vectors
