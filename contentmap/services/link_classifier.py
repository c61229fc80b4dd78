"""
Classify hrefs against a project domain.

An href either resolves to a content-node slug inside the project
(`InternalLink`) or is an opaque external target (`ExternalLink`).

Decision order for `classify_href(href, domain)`:
  1. "/path"                      -> internal, slug "path"
  2. "https://[www.]domain/path"  -> internal, slug "path"
  3. "[www.]domain/path"          -> internal, slug "path"
  4. other schemes, "#", mailto:, tel: -> external
  5. "other-host.com/path"       -> external (bare "domain" is the site root)
  6. bare relative path           -> internal, slug "path" ("guide.html" included)

External hrefs are kept verbatim (trimmed).

External targets are deduplicated with `normalize_external_url`, which folds
scheme, leading "www.", trailing slash and case.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import urlsplit

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_WWW_RE = re.compile(r"^www\.", re.IGNORECASE)
# "example.com", "blog.example.co.uk" (first path segment of a scheme-less href)
_HOSTNAME_RE = re.compile(r"^(?:[a-z0-9-]+\.)+[a-z]{2,}(?::\d+)?$", re.IGNORECASE)
_NON_WEB_PREFIXES = ("#", "mailto:", "tel:")


@dataclass(frozen=True)
class InternalLink:
    slug: str
    kind: str = "internal"


@dataclass(frozen=True)
class ExternalLink:
    href: str
    kind: str = "external"


Classification = Union[InternalLink, ExternalLink]


def normalize_domain(domain: Optional[str]) -> str:
    """'https://www.Site.com/' -> 'site.com'"""
    if not domain:
        return ""
    d = _SCHEME_RE.sub("", domain.strip())
    d = _WWW_RE.sub("", d)
    return d.rstrip("/").lower()


def normalize_external_url(url: Optional[str]) -> str:
    """Identity key for external nodes: scheme, www., trailing slash and case folded."""
    if not url:
        return ""
    u = _SCHEME_RE.sub("", url.strip().lower())
    u = _WWW_RE.sub("", u)
    return u.rstrip("/")


def _looks_like_host(href: str) -> bool:
    """Dotted first segment followed by a path, as in example.com/page."""
    first_segment, slash, _ = href.partition("/")
    return bool(slash) and bool(_HOSTNAME_RE.match(first_segment))


def _strip_slashes(path: str) -> str:
    return path.strip("/")


def classify_href(href: str, domain: Optional[str]) -> Classification:
    """Decide whether `href` is internal (slug) or external (opaque href)."""
    raw = (href or "").strip()
    normalized_domain = normalize_domain(domain)
    lowered = raw.lower()

    if lowered.startswith("/"):
        return InternalLink(slug=_strip_slashes(lowered))

    if lowered.startswith(("http://", "https://")):
        try:
            parts = urlsplit(lowered)
        except ValueError:
            return ExternalLink(href=raw)
        host = _WWW_RE.sub("", parts.hostname or "")
        if normalized_domain and host == normalized_domain:
            return InternalLink(slug=_strip_slashes(parts.path))
        return ExternalLink(href=raw)

    without_www = _WWW_RE.sub("", lowered)
    if normalized_domain and without_www.startswith(normalized_domain + "/"):
        return InternalLink(slug=without_www[len(normalized_domain) + 1:].rstrip("/"))

    if "://" in lowered or lowered.startswith(_NON_WEB_PREFIXES):
        return ExternalLink(href=raw)

    # The bare project domain is the site root
    if normalized_domain and without_www == normalized_domain:
        return InternalLink(slug="")

    if _looks_like_host(without_www):
        return ExternalLink(href=raw)

    return InternalLink(slug=lowered.rstrip("/"))


def external_url_key(href: str) -> Optional[str]:
    """
    Normalized key for an external href that points at a web page, or None for
    targets that can never become external nodes (mailto:, tel:, fragments,
    javascript:, other schemes).
    """
    raw = (href or "").strip()
    if not raw:
        return None
    lowered = raw.lower()
    if lowered.startswith(_NON_WEB_PREFIXES):
        return None
    if "://" in lowered:
        if not lowered.startswith(("http://", "https://")):
            return None
        try:
            host = urlsplit(lowered).hostname
        except ValueError:
            return None
        if not host:
            return None
    elif not _looks_like_host(_WWW_RE.sub("", lowered)):
        return None
    key = normalize_external_url(raw)
    return key or None


__all__ = [
    "InternalLink",
    "ExternalLink",
    "Classification",
    "normalize_domain",
    "normalize_external_url",
    "classify_href",
    "external_url_key",
]
