"""Retrieval results and citation tracking."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


class MetadataFilter(BaseModel):
    """Declarative metadata filter for vector-store queries.

    Attributes
    ----------
    field:
        Metadata key to filter on (e.g. ``"url"``, ``"source_type"``).
    operator:
        One of ``eq``, ``ne``, ``gt``, ``gte``, ``lt``, ``lte``, ``in``, ``nin``.
    value:
        Value (or list of values for ``in`` / ``nin``) to compare against.
    """

    field: str
    operator: str = "eq"
    value: Any = None

    @classmethod
    def equals(cls, field: str, value: Any) -> MetadataFilter:
        return cls(field=field, operator="eq", value=value)

    @classmethod
    def one_of(cls, field: str, values: list[Any]) -> MetadataFilter:
        return cls(field=field, operator="in", value=values)


class Citation(BaseModel):
    """Links a retrieved chunk back to the page it was cut from."""

    citation_id: str = Field(default_factory=lambda: uuid4().hex[:12])
    document_id: str | None = None
    url: str = "unknown"
    title: str = ""
    chunk_index: int | None = None
    page_index: int | None = None
    score: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    retrieved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def short_ref(self) -> str:
        """Return a compact ``[url§chunk]`` reference string."""
        chunk = self.chunk_index if self.chunk_index is not None else "?"
        return f"[{self.url}§{chunk}]"


class RetrievalResult(BaseModel):
    """A single retrieved chunk together with its citation."""

    content: str
    citation: Citation

    def __str__(self) -> str:  # noqa: D105
        return f"{self.citation.short_ref()} {self.content[:120]}…"
