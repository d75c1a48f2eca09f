from __future__ import annotations

from types import SimpleNamespace

import httpx
import openai
import pytest

from site_ingest.config import Settings
from site_ingest.ingestion.embedder import EmbeddingBatcher
from site_ingest.ingestion.embedding_client import (
    EmbeddingBadRequestError,
    EmbeddingClientError,
    EmbeddingRateLimitError,
    OpenAIEmbeddingClient,
)

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/embeddings")


def _payload(*vectors: list[float], reverse: bool = False) -> SimpleNamespace:
    items = [SimpleNamespace(index=i, embedding=v) for i, v in enumerate(vectors)]
    if reverse:
        items.reverse()
    return SimpleNamespace(data=items)


@pytest.fixture()
def client() -> OpenAIEmbeddingClient:
    return OpenAIEmbeddingClient(api_key="test-key", model="text-embedding-ada-002")


def test_parses_vectors_in_index_order(client: OpenAIEmbeddingClient, monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_create(**kwargs: object) -> SimpleNamespace:
        captured.update(kwargs)
        return _payload([1, 2, 3], [4.5, 5.0, 6.25], reverse=True)

    monkeypatch.setattr(client._client.embeddings, "create", fake_create)

    vectors = client.embed_texts(["first", "second"])

    assert vectors == [[1.0, 2.0, 3.0], [4.5, 5.0, 6.25]]
    assert captured == {
        "model": "text-embedding-ada-002",
        "input": ["first", "second"],
        "encoding_format": "float",
    }


def test_empty_input_makes_no_request(client: OpenAIEmbeddingClient, monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_create(**kwargs: object) -> SimpleNamespace:
        raise AssertionError("should not be called")

    monkeypatch.setattr(client._client.embeddings, "create", fake_create)
    assert client.embed_texts([]) == []


def test_rejects_payload_size_mismatch(client: OpenAIEmbeddingClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(client._client.embeddings, "create", lambda **kwargs: _payload([1, 2, 3]))

    with pytest.raises(EmbeddingClientError, match="expected 2 vectors"):
        client.embed_texts(["first", "second"])


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (
            openai.RateLimitError("slow down", response=httpx.Response(429, request=_REQUEST), body=None),
            EmbeddingRateLimitError,
        ),
        (
            openai.BadRequestError("too long", response=httpx.Response(400, request=_REQUEST), body=None),
            EmbeddingBadRequestError,
        ),
        (
            openai.InternalServerError("oops", response=httpx.Response(500, request=_REQUEST), body=None),
            EmbeddingClientError,
        ),
    ],
)
def test_maps_api_errors(
    client: OpenAIEmbeddingClient,
    monkeypatch: pytest.MonkeyPatch,
    error: Exception,
    expected: type[Exception],
) -> None:
    def fake_create(**kwargs: object) -> SimpleNamespace:
        raise error

    monkeypatch.setattr(client._client.embeddings, "create", fake_create)

    with pytest.raises(expected) as excinfo:
        client.embed_texts(["text"])
    assert excinfo.type is expected


def test_rate_limit_and_bad_request_are_client_errors() -> None:
    assert issubclass(EmbeddingRateLimitError, EmbeddingClientError)
    assert issubclass(EmbeddingBadRequestError, EmbeddingClientError)


def test_sdk_retries_are_disabled(client: OpenAIEmbeddingClient) -> None:
    assert client._client.max_retries == 0


def test_batcher_builds_client_with_request_timeout(settings: Settings) -> None:
    batcher = EmbeddingBatcher(settings.model_copy(update={"request_timeout_seconds": 12.0}))

    assert batcher._client._client.max_retries == 0
    assert batcher._client._client.timeout == 12.0
