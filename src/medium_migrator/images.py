"""Image reference discovery and classification.

Finds images embedded with Markdown ``![alt](url)`` or HTML
``<img src="...">`` syntax and decides which of them are hosted by the
old site (and therefore need uploading) and which already live elsewhere.
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit

from medium_migrator.models import ImageReference, ReferenceKind

_IMAGE_RE = re.compile(
    r"!\[[^\]]*\]\(\s*(?P<md>[^)\s]*)(?:\s+[^)]*)?\)"
    r"|<img\b[^>]*?\ssrc\s*=\s*(?:\"(?P<dq>[^\"]*)\"|'(?P<sq>[^']*)')",
    re.IGNORECASE,
)


def extract_image_references(body: str) -> list[str]:
    """Return every image URL/path in *body*, in order of first appearance.

    Duplicates are kept. References with an empty target are ignored.
    """
    references: list[str] = []
    for match in _IMAGE_RE.finditer(body):
        url = match.group("md")
        if url is None:
            url = match.group("dq") if match.group("dq") is not None else match.group("sq")
        url = (url or "").strip()
        if url:
            references.append(url)
    return references


def _normalize_host(host: str) -> str:
    host = host.lower()
    return host[4:] if host.startswith("www.") else host


def site_domain(site_url: str) -> str:
    """Host name of the site URL (``https://example.org/`` -> ``example.org``)."""
    return urlsplit(site_url).hostname or site_url


def classify_reference(url: str, domain: str) -> ImageReference:
    """Classify a reference relative to the site's own *domain*."""
    parts = urlsplit(url)
    host = parts.hostname
    if parts.scheme and parts.scheme not in ("http", "https"):
        # data: URIs and the like are not files on the site
        kind = ReferenceKind.EXTERNAL
    elif not host:
        kind = ReferenceKind.LOCAL_ABSOLUTE if url.startswith("/") else ReferenceKind.LOCAL_RELATIVE
    elif _normalize_host(host) == _normalize_host(domain):
        kind = ReferenceKind.LOCAL_ABSOLUTE
    else:
        kind = ReferenceKind.EXTERNAL
    return ImageReference(url=url, kind=kind)


def filter_uploadable(urls: list[str], domain: str) -> list[str]:
    """Keep references hosted by the site itself; drop third-party hosts."""
    return [u for u in urls if classify_reference(u, domain).uploadable]
