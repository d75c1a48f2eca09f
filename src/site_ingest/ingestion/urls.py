"""URL helpers shared by the extractor and the crawl orchestrator."""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import urldefrag, urljoin, urlsplit, urlunsplit

_NON_WEB_SCHEMES = ("javascript:", "mailto:", "tel:", "data:")
_BINARY_SUFFIXES = (".pdf",)
_DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_url(href: str | None, base_url: str | None = None) -> str | None:
    """Resolve *href* against *base_url* into a canonical absolute URL.

    Scheme and host are lower-cased, default ports dropped, an empty path
    becomes ``/`` and the fragment is removed, so two spellings of one
    page compare equal.

    Returns ``None`` for targets that lead nowhere worth fetching: empty
    or fragment-only hrefs, non-web schemes (``javascript:``, ``mailto:``
    …), and anything that does not resolve to an http(s) URL.
    """
    if href is None:
        return None
    href = href.strip()
    if not href or href.startswith("#"):
        return None
    if href.lower().startswith(_NON_WEB_SCHEMES):
        return None

    absolute = urljoin(base_url, href) if base_url else href
    absolute, _fragment = urldefrag(absolute)
    try:
        parts = urlsplit(absolute)
        port = parts.port
    except ValueError:
        return None
    scheme = parts.scheme.lower()
    if scheme not in ("http", "https") or not parts.hostname:
        return None

    host = parts.hostname.lower()
    if ":" in host:
        host = f"[{host}]"
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        host = f"{host}:{port}"
    userinfo = parts.netloc.rpartition("@")[0]
    netloc = f"{userinfo}@{host}" if userinfo else host
    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, ""))


def host_of(url: str) -> str:
    """Lower-cased hostname of *url*, or ``""`` when it cannot be parsed."""
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def is_allowed_domain(url: str, allowed_domains: Iterable[str]) -> bool:
    """True when *url*'s host equals an allowed domain or is a subdomain of one.

    ``sub.popg.com`` matches ``popg.com``; ``evil-popg.com`` does not.
    """
    host = host_of(url)
    if not host:
        return False
    for domain in allowed_domains:
        domain = domain.lower().strip(".")
        if host == domain or host.endswith("." + domain):
            return True
    return False


def is_binary_document(url: str) -> bool:
    """True when the URL path names a document type parsed from bytes (PDF)."""
    try:
        path = urlsplit(url).path.lower()
    except ValueError:
        return False
    return path.endswith(_BINARY_SUFFIXES)


def filter_links(hrefs: Iterable[str | None], base_url: str, allowed_domains: Iterable[str]) -> list[str]:
    """Resolve raw anchor hrefs and keep unique, allowed-domain targets in order."""
    allowed = list(allowed_domains)
    seen: set[str] = set()
    out: list[str] = []
    for href in hrefs:
        url = normalize_url(href, base_url)
        if url is None or url in seen:
            continue
        if not is_allowed_domain(url, allowed):
            continue
        seen.add(url)
        out.append(url)
    return out
