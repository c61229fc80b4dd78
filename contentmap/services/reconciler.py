"""
Link-sync planning.

`plan_link_sync` is a pure function of

    (source node, project domain, article HTML, project nodes, source edges)

and returns the minimal set of edge/node mutations that brings the graph in
line with the hyperlinks in the article. Applying the plan is the caller's
job (see `content_sync.ContentLinkSync`), which keeps this module free of
I/O and trivially re-runnable: planning against a graph that already matches
the content yields an empty plan.

Internal links  -> one `interlinks` edge per (source, target slug)
External links  -> one `external` node per normalized URL per project, and
                   one `outbound` edge per (source, external node)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from contentmap.domain import ContentNode, Edge, EdgeType, Handle, NodeType, Position
from contentmap.services.handles import assign_handles
from contentmap.services.link_classifier import (
    ExternalLink,
    InternalLink,
    classify_href,
    external_url_key,
    normalize_domain,
    normalize_external_url,
)
from contentmap.services.link_extractor import extract_links

OUTBOUND_LABEL_MAX = 30
SKIP_NO_DOMAIN = "no_domain"


@dataclass(frozen=True)
class InternalEdgeDraft:
    target_node_id: str
    slug: str
    label: str
    source_handle: Handle
    target_handle: Handle


@dataclass(frozen=True)
class ExternalTarget:
    """One unique external URL found in the content."""

    key: str
    href: str
    anchor_text: str
    node_id: Optional[str] = None  # None -> an external node must be created
    needs_edge: bool = True
    position: Optional[Position] = None

    @property
    def needs_node(self) -> bool:
        return self.node_id is None


@dataclass
class LinkSyncPlan:
    source_node_id: str
    internal_deletes: List[Edge] = field(default_factory=list)
    internal_creates: List[InternalEdgeDraft] = field(default_factory=list)
    external_targets: List[ExternalTarget] = field(default_factory=list)
    outbound_deletes: List[Edge] = field(default_factory=list)
    outbound_cleanup: bool = False
    skipped: Optional[str] = None

    @property
    def is_noop(self) -> bool:
        return not (
            self.internal_deletes
            or self.internal_creates
            or self.outbound_deletes
            or any(t.needs_node or t.needs_edge for t in self.external_targets)
        )


def outbound_label(anchor_text: str) -> str:
    if len(anchor_text) > OUTBOUND_LABEL_MAX:
        return anchor_text[:OUTBOUND_LABEL_MAX] + "..."
    return anchor_text


def _external_groups(links, domain: str) -> Dict[str, ExternalTarget]:
    """Unique external URLs in first-occurrence order, keyed by normalized URL."""
    groups: Dict[str, ExternalTarget] = {}
    for link in links:
        result = classify_href(link.href, domain)
        if not isinstance(result, ExternalLink):
            continue
        key = external_url_key(result.href)
        if key is None or key in groups:
            continue
        groups[key] = ExternalTarget(key=key, href=result.href, anchor_text=link.anchor_text)
    return groups


def has_external_links(content: Optional[str], domain: str) -> bool:
    if not content:
        return False
    return bool(_external_groups(extract_links(content), domain))


def _duplicates(edges: Iterable[Edge]) -> List[Edge]:
    """Every edge after the first per target (auto edges must be unique per pair)."""
    seen: Set[str] = set()
    extra: List[Edge] = []
    for e in edges:
        if e.target_node_id in seen:
            extra.append(e)
        else:
            seen.add(e.target_node_id)
    return extra


def plan_link_sync(
    source_node_id: str,
    domain: Optional[str],
    content: Optional[str],
    nodes: Iterable[ContentNode],
    edges: Iterable[Edge],
    previous_content: Optional[str] = None,
) -> LinkSyncPlan:
    """
    Diff the links in `content` against the source node's outgoing edges.

    Args:
      source_node_id: node that owns the article.
      domain: project domain; without it nothing can be resolved and the plan
        is marked skipped.
      content: article HTML as most recently persisted.
      nodes: every node of the project.
      edges: edges whose source is `source_node_id`.
      previous_content: article HTML before this save, if known. Lets the
        outbound cleanup run when the last external link was just removed.
    """
    plan = LinkSyncPlan(source_node_id=source_node_id)
    normalized_domain = normalize_domain(domain)
    if not normalized_domain:
        plan.skipped = SKIP_NO_DOMAIN
        return plan

    nodes = list(nodes)
    edges = [e for e in edges if e.source_node_id == source_node_id]
    by_id: Dict[str, ContentNode] = {n.id: n for n in nodes}
    source = by_id.get(source_node_id)
    source_pos = source.position if source else None

    links = extract_links(content or "")

    # ---------- internal ----------
    first_anchor_by_slug: Dict[str, str] = {}
    for link in links:
        result = classify_href(link.href, normalized_domain)
        if isinstance(result, InternalLink) and result.slug:
            first_anchor_by_slug.setdefault(result.slug, link.anchor_text)
    current_slugs = set(first_anchor_by_slug)

    interlinks = [e for e in edges if e.edge_type is EdgeType.INTERLINKS]
    stale_ids: Set[str] = set()
    for e in interlinks:
        target = by_id.get(e.target_node_id)
        target_slug = (target.slug or "").lower() if target else ""
        if target is None or target.is_external or target_slug not in current_slugs:
            plan.internal_deletes.append(e)
            stale_ids.add(e.id)
    for e in _duplicates(x for x in interlinks if x.id not in stale_ids):
        plan.internal_deletes.append(e)

    internal_by_slug: Dict[str, ContentNode] = {}
    for n in nodes:
        if n.node_type is not NodeType.EXTERNAL and n.slug:
            internal_by_slug.setdefault(n.slug.lower(), n)

    deleted_ids = {e.id for e in plan.internal_deletes}
    linked_targets = {e.target_node_id for e in edges if e.id not in deleted_ids}
    for slug, anchor in first_anchor_by_slug.items():
        target = internal_by_slug.get(slug)
        if target is None or target.id == source_node_id or target.id in linked_targets:
            continue
        src_handle, tgt_handle = assign_handles(source_pos, target.position)
        plan.internal_creates.append(
            InternalEdgeDraft(
                target_node_id=target.id,
                slug=slug,
                label=anchor,
                source_handle=src_handle,
                target_handle=tgt_handle,
            )
        )
        linked_targets.add(target.id)

    # ---------- external ----------
    groups = _external_groups(links, normalized_domain)

    external_by_key: Dict[str, ContentNode] = {}
    for n in nodes:
        if n.is_external:
            external_by_key.setdefault(normalize_external_url(n.url), n)

    outbound = [e for e in edges if e.edge_type is EdgeType.OUTBOUND]
    outbound_targets = {e.target_node_id for e in outbound}
    for key, target in groups.items():
        node = external_by_key.get(key)
        if node is None:
            plan.external_targets.append(target)
        else:
            plan.external_targets.append(
                ExternalTarget(
                    key=key,
                    href=target.href,
                    anchor_text=target.anchor_text,
                    node_id=node.id,
                    needs_edge=node.id not in outbound_targets,
                    position=node.position,
                )
            )

    # Empty content that failed to load must not read as "all links removed"
    plan.outbound_cleanup = bool(groups) or has_external_links(
        previous_content, normalized_domain
    )
    if plan.outbound_cleanup:
        stale_outbound: Set[str] = set()
        for e in outbound:
            target = by_id.get(e.target_node_id)
            if target is None or not target.is_external:
                continue
            if normalize_external_url(target.url) not in groups:
                plan.outbound_deletes.append(e)
                stale_outbound.add(e.id)
        for e in _duplicates(x for x in outbound if x.id not in stale_outbound):
            plan.outbound_deletes.append(e)

    return plan


__all__ = [
    "OUTBOUND_LABEL_MAX",
    "SKIP_NO_DOMAIN",
    "InternalEdgeDraft",
    "ExternalTarget",
    "LinkSyncPlan",
    "outbound_label",
    "has_external_links",
    "plan_link_sync",
]
