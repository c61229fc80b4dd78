"""
Reverse-sync: when a user deletes an edge on the canvas, unwrap the anchors in
the source article that point at the edge's target.

Only the matching `<a ...>...</a>` spans are rewritten (replaced by their inner
HTML); every other byte of the document is left as is, which is why this works
on the raw string instead of re-serializing a parsed DOM.
"""

from __future__ import annotations

from typing import Callable, Optional, Tuple

from contentmap.domain import ContentNode
from contentmap.services.link_classifier import (
    ExternalLink,
    InternalLink,
    classify_href,
    external_url_key,
    normalize_external_url,
)
from contentmap.services.link_extractor import ANCHOR_RE, anchor_href, anchor_inner_html

# (href, inner_html) -> unwrap?
AnchorMatcher = Callable[[str, str], bool]


def unlink_anchors(html: str, matcher: AnchorMatcher) -> Tuple[str, int]:
    """
    Replace every anchor accepted by `matcher` with its inner HTML.

    Returns the rewritten document and the number of anchors removed. When
    nothing matches the input string is returned unchanged.
    """
    if not html:
        return html, 0

    removed = 0

    def _replace(match) -> str:
        nonlocal removed
        href = anchor_href(match)
        inner = anchor_inner_html(match)
        if matcher(href, inner):
            removed += 1
            return inner
        return match.group(0)

    result = ANCHOR_RE.sub(_replace, html)
    if not removed:
        return html, 0
    return result, removed


def slug_matcher(slug: str, domain: str) -> AnchorMatcher:
    wanted = (slug or "").strip("/").lower()

    def _match(href: str, inner: str) -> bool:
        result = classify_href(href, domain)
        return isinstance(result, InternalLink) and bool(wanted) and result.slug == wanted

    return _match


def external_matcher(url: str, domain: str) -> AnchorMatcher:
    """Match external anchors whose normalized URL equals the node's."""
    wanted_key = normalize_external_url(url)

    def _match(href: str, inner: str) -> bool:
        result = classify_href(href, domain)
        return (
            isinstance(result, ExternalLink)
            and bool(wanted_key)
            and external_url_key(result.href) == wanted_key
        )

    return _match


def matcher_for_target(target: ContentNode, domain: Optional[str]) -> Optional[AnchorMatcher]:
    """
    Anchor matcher for an edge target, or None when the target's identity
    cannot be resolved (internal node without a slug, or no project domain).
    """
    if target.is_external:
        return external_matcher(target.url, domain or "")
    if not target.slug or not domain:
        return None
    return slug_matcher(target.slug, domain)


__all__ = [
    "AnchorMatcher",
    "unlink_anchors",
    "slug_matcher",
    "external_matcher",
    "matcher_for_target",
]
