"""Fixed-size, overlapping character chunking."""

from __future__ import annotations

import logging

from site_ingest.ingestion.models import Chunk, PageDocument

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1500
DEFAULT_CHUNK_OVERLAP = 150
DEFAULT_MIN_CHUNK_CHARS = 100
DEFAULT_MAX_CHUNKS = 1000


def chunk_spans(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    *,
    min_chunk_chars: int = DEFAULT_MIN_CHUNK_CHARS,
    max_chunks: int = DEFAULT_MAX_CHUNKS,
) -> list[tuple[int, int]]:
    """Return the ``(start, end)`` offsets of every chunk of *text*.

    A window of *chunk_size* characters slides over the text, stepping
    back *chunk_overlap* characters each time. Windows whose stripped
    text is no longer than *min_chunk_chars* are dropped, except that a
    short final window still holding uncovered characters is widened to
    a full-size window ending at the end of the text.

    Parameters
    ----------
    text:
        Normalised page text.
    chunk_size:
        Maximum number of characters per chunk.
    chunk_overlap:
        Characters shared by consecutive chunks. A geometry with
        ``chunk_size <= chunk_overlap`` is invalid and replaced by the
        defaults.
    min_chunk_chars:
        Windows at or below this stripped length are degenerate.
    max_chunks:
        Hard ceiling on the number of chunks for one text.
    """
    if not text:
        return []

    if chunk_size <= 0 or chunk_overlap < 0 or chunk_size <= chunk_overlap:
        logger.warning(
            "Invalid chunk configuration: chunk_size (%d) <= overlap (%d). Using default values.",
            chunk_size,
            chunk_overlap,
        )
        chunk_size, chunk_overlap = DEFAULT_CHUNK_SIZE, DEFAULT_CHUNK_OVERLAP

    logger.debug("Chunking %d chars, size=%d, overlap=%d", len(text), chunk_size, chunk_overlap)

    length = len(text)
    spans: list[tuple[int, int]] = []
    covered = 0
    start = 0
    while start < length:
        end = min(start + chunk_size, length)
        if len(text[start:end].strip()) > min_chunk_chars:
            spans.append((start, end))
            covered = end
        elif end == length and covered < length:
            widened = max(0, length - chunk_size)
            if len(text[widened:length].strip()) > min_chunk_chars:
                spans.append((widened, length))
                covered = length

        if end >= length:
            break
        if len(spans) >= max_chunks:
            logger.error("Too many chunks (%d), stopping early", len(spans))
            break

        next_start = end - chunk_overlap
        if next_start <= start:
            next_start = start + max(1, chunk_size // 2)
        start = next_start

    return spans


def split_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    *,
    min_chunk_chars: int = DEFAULT_MIN_CHUNK_CHARS,
    max_chunks: int = DEFAULT_MAX_CHUNKS,
) -> list[str]:
    """Split *text* into overlapping chunks; see :func:`chunk_spans`."""
    spans = chunk_spans(
        text,
        chunk_size,
        chunk_overlap,
        min_chunk_chars=min_chunk_chars,
        max_chunks=max_chunks,
    )
    return [text[start:end] for start, end in spans]


def chunk_page(
    page: PageDocument,
    page_index: int,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    *,
    min_chunk_chars: int = DEFAULT_MIN_CHUNK_CHARS,
    max_chunks: int = DEFAULT_MAX_CHUNKS,
) -> list[Chunk]:
    """Chunk one page's content into :class:`Chunk` records, in order.

    An empty list is a valid result for pages whose text is too short.
    """
    texts = split_text(
        page.content,
        chunk_size,
        chunk_overlap,
        min_chunk_chars=min_chunk_chars,
        max_chunks=max_chunks,
    )
    return [
        Chunk(
            text=text,
            source_url=page.url,
            source_title=page.title,
            chunk_index=index,
            total_chunks=len(texts),
            page_index=page_index,
        )
        for index, text in enumerate(texts)
    ]
