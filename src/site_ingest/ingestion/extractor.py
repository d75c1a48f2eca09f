"""Content extraction: fetch one URL and turn it into a :class:`PageDocument`.

HTML pages are fetched with browser-like headers, stripped of
boiler-plate, and reduced to the visible text of their main content
container. PDF documents are downloaded as a bounded byte stream and
their pages' text concatenated.

``extract`` has three outcomes:

* a ``PageDocument``: the page had enough text;
* ``None``: the page was fetched but is not worth keeping (too little
  text, oversized binary, non-text response);
* :class:`ExtractionError`: the fetch or parse failed.
"""

from __future__ import annotations

import io
import logging
import re
import unicodedata
from urllib.parse import unquote, urlsplit

import requests
from bs4 import BeautifulSoup
from pypdf import PdfReader

from site_ingest.config import Settings
from site_ingest.ingestion.models import PageDocument
from site_ingest.ingestion.urls import filter_links, is_binary_document

logger = logging.getLogger(__name__)

BOILERPLATE_SELECTORS = (
    "script, style, noscript, iframe, nav, footer, header, aside, "
    ".sidebar, .menu, .navigation"
)
MAIN_CONTENT_SELECTORS = "main, article, .content, .post, .entry, .article-content"

_DOWNLOAD_CHUNK_BYTES = 64 * 1024
_WHITESPACE_RE = re.compile(r"\s+")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


class ExtractionError(RuntimeError):
    """Fetching or parsing a single URL failed."""


def normalize_text(text: str) -> str:
    """Unicode NFC, strip control chars, collapse every whitespace run to one space."""
    text = unicodedata.normalize("NFC", text)
    text = _CONTROL_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


class ContentExtractor:
    """Fetches URLs and extracts their text, metadata, and outbound links.

    Parameters
    ----------
    settings:
        Run configuration; the extractor reads the fetch, size, and
        allowed-domain options from it.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._headers = {
            "User-Agent": settings.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
            "DNT": "1",
        }

    # -- public API -----------------------------------------------------------

    def extract(self, url: str) -> PageDocument | None:
        """Fetch *url* and return its document, ``None`` if uninformative."""
        if self._settings.pdf_enabled and is_binary_document(url):
            return self.extract_pdf(url)
        return self.extract_html(url)

    def extract_html(self, url: str) -> PageDocument | None:
        logger.info("Scraping %s", url)
        try:
            resp = requests.get(url, headers=self._headers, timeout=self._settings.request_timeout_seconds)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise ExtractionError(f"Failed to fetch {url}: {exc}") from exc

        ctype = (resp.headers.get("content-type") or "").lower()
        if ctype and not any(kind in ctype for kind in ("html", "xml", "text")):
            logger.warning("Skipping %s: unsupported content type %r", url, ctype)
            return None

        return self.parse_html(url, resp.text)

    def parse_html(self, url: str, html: str) -> PageDocument | None:
        """Build a document from already-fetched *html* served at *url*."""
        try:
            soup = BeautifulSoup(html, "html.parser")
        except Exception as exc:  # noqa: BLE001 - parser failures vary by input
            raise ExtractionError(f"Failed to parse {url}: {exc}") from exc

        title = soup.title.get_text(strip=True) if soup.title else ""
        description = _meta_content(soup, "description")
        keywords = _meta_content(soup, "keywords")

        # Links come from the whole page, navigation included.
        hrefs = [a.get("href") for a in soup.find_all("a", href=True)]
        links = filter_links(hrefs, url, self._settings.allowed_domains)

        for tag in soup.select(BOILERPLATE_SELECTORS):
            tag.decompose()
        container = soup.select_one(MAIN_CONTENT_SELECTORS) or soup.body or soup
        text = normalize_text(container.get_text(separator=" "))

        content = self._accept_content(url, text)
        if content is None:
            return None

        logger.info("Scraped %s (%d chars, %d links)", title or url, len(content), len(links))
        return PageDocument(
            url=url,
            title=title or "Untitled",
            description=description,
            keywords=keywords,
            content=content,
            outbound_links=tuple(links),
        )

    def extract_pdf(self, url: str) -> PageDocument | None:
        logger.info("Processing PDF %s", url)
        data = self._download(url)
        if data is None:
            return None

        try:
            reader = PdfReader(io.BytesIO(data))
            pages = list(reader.pages)
        except Exception as exc:  # noqa: BLE001 - pypdf raises a wide range of errors
            raise ExtractionError(f"Failed to parse PDF {url}: {exc}") from exc

        parts: list[str] = []
        for number, page in enumerate(pages, start=1):
            try:
                parts.append(page.extract_text() or "")
            except Exception as exc:  # noqa: BLE001 - one bad page must not sink the rest
                logger.warning("Error processing page %d of %s: %s", number, url, exc)

        content = self._accept_content(url, normalize_text("\n".join(parts)))
        if content is None:
            return None

        logger.info("PDF processed: %d pages, %d chars", len(pages), len(content))
        filename = unquote(urlsplit(url).path.rsplit("/", 1)[-1])
        return PageDocument(
            url=url,
            title=f"PDF Document: {filename}",
            description="PDF document content",
            keywords="pdf, document",
            content=content,
            is_binary=True,
            unit_count=len(pages),
        )

    # -- internals ------------------------------------------------------------

    def _download(self, url: str) -> bytes | None:
        """Stream *url* into memory, giving up once it exceeds ``pdf_max_bytes``."""
        limit = self._settings.pdf_max_bytes
        try:
            resp = requests.get(
                url,
                headers={"User-Agent": self._settings.user_agent},
                timeout=self._settings.request_timeout_seconds,
                stream=True,
            )
        except requests.RequestException as exc:
            raise ExtractionError(f"Failed to fetch {url}: {exc}") from exc

        try:
            resp.raise_for_status()
            declared = resp.headers.get("content-length")
            if declared and declared.isdigit() and int(declared) > limit:
                logger.warning("PDF too large: %s bytes (max: %d) %s", declared, limit, url)
                return None

            buf = bytearray()
            for block in resp.iter_content(chunk_size=_DOWNLOAD_CHUNK_BYTES):
                buf.extend(block)
                if len(buf) > limit:
                    logger.warning("PDF too large: over %d bytes, rejecting %s", limit, url)
                    return None
            return bytes(buf)
        except requests.RequestException as exc:
            raise ExtractionError(f"Failed to download {url}: {exc}") from exc
        finally:
            resp.close()

    def _accept_content(self, url: str, text: str) -> str | None:
        if len(text) < self._settings.min_content_chars:
            logger.warning("%s has insufficient content: %d characters", url, len(text))
            return None
        cap = self._settings.max_content_chars
        if len(text) > cap:
            logger.warning("Content of %s truncated from %d to %d characters", url, len(text), cap)
            text = text[:cap]
        return text


def _meta_content(soup: BeautifulSoup, name: str) -> str:
    tag = soup.find("meta", attrs={"name": name})
    if tag is None:
        return ""
    return (tag.get("content") or "").strip()
