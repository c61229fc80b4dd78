from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

from contentmap.domain import (
    ContentNode,
    Edge,
    EdgeType,
    NodeStatus,
    NodeType,
    Position,
    SyncReport,
    UnlinkReport,
)
from contentmap.services.graph_store import GraphStore, new_id
from contentmap.services.handles import assign_handles
from contentmap.services.limits import LimitCheck, ResourceLimitGate, UNLIMITED, node_limit_message
from contentmap.services.reconciler import (
    SKIP_NO_DOMAIN,
    ExternalTarget,
    LinkSyncPlan,
    outbound_label,
    plan_link_sync,
)
from contentmap.services.reverse_sync import matcher_for_target, unlink_anchors

logger = logging.getLogger(__name__)

T = TypeVar("T")

# New external nodes are placed to the right of the source, stacked downwards
EXTERNAL_OFFSET_X = 300.0
EXTERNAL_STEP_Y = 80.0


class ContentLinkSync:
    """
    Keeps the content graph consistent with the hyperlinks in articles.

    - reconcile_content_links(): article saved -> derive and apply edge/node mutations
    - remove_edge_and_unlink(): edge deleted on the canvas -> unwrap matching anchors

    A run is a sequence of independent Graph Store calls. A failing call is
    logged and skipped; the next run re-derives the full diff and retries it.
    """

    def __init__(self, store: GraphStore, gate: Optional[ResourceLimitGate] = None):
        self.store = store
        self.gate = gate

    # ---------- Public API ----------
    def reconcile_content_links(
        self,
        source_node_id: str,
        project_id: str,
        domain: Optional[str],
        content: Optional[str],
        previous_content: Optional[str] = None,
    ) -> SyncReport:
        report = SyncReport()
        if not (domain or "").strip():
            logger.warning(
                "[link-sync] Skipped node=%s: no domain set for project %s",
                source_node_id,
                project_id,
            )
            report.skipped = SKIP_NO_DOMAIN
            return report

        try:
            nodes = self.store.list_nodes(project_id)
            edges = self.store.list_edges(source_node_id)
        except Exception:
            logger.exception("[link-sync] Could not load graph for node=%s", source_node_id)
            report.skipped = "graph_unavailable"
            return report

        plan = plan_link_sync(
            source_node_id,
            domain,
            content,
            nodes,
            edges,
            previous_content=previous_content,
        )
        if plan.skipped:
            report.skipped = plan.skipped
            return report

        source = next((n for n in nodes if n.id == source_node_id), None)
        self._apply(plan, project_id, source, report)
        logger.info(
            "[link-sync] node=%s created=%d deleted=%d external_nodes=%d warnings=%d",
            source_node_id,
            report.edges_created,
            report.edges_deleted,
            report.external_nodes_created,
            len(report.warnings),
        )
        return report

    def remove_edge_and_unlink(self, edge: Edge) -> UnlinkReport:
        """Delete `edge` and unwrap the anchors in the source article that produced it."""
        report = UnlinkReport()
        report.edge_deleted = self.store.delete_edge(edge.id)

        target = self.store.get_node(edge.target_node_id)
        if target is None:
            logger.info("[link-sync] Unlink skipped: target %s no longer exists", edge.target_node_id)
            return report

        domain = None
        if not target.is_external:
            domain = self.store.get_project_domain(edge.project_id)
            if not domain:
                logger.warning(
                    "[link-sync] Unlink skipped for edge=%s: no domain set for project %s",
                    edge.id,
                    edge.project_id,
                )
                return report

        matcher = matcher_for_target(target, domain)
        if matcher is None:
            return report

        article = self.store.get_article(edge.source_node_id)
        if article is None or not article.content:
            return report

        html, removed = unlink_anchors(article.content, matcher)
        if not removed:
            # Content already diverged from the graph
            return report

        report.anchors_removed = removed
        report.content_mutated = bool(
            self._safe(
                "update_article_content",
                lambda: self.store.update_article_content(edge.source_node_id, html),
            )
        )
        if report.content_mutated:
            logger.info(
                "[link-sync] Unwrapped %d anchor(s) to %s in node=%s",
                removed,
                target.url if target.is_external else target.slug,
                edge.source_node_id,
            )
        return report

    # ---------- Applying a plan ----------
    def _apply(
        self,
        plan: LinkSyncPlan,
        project_id: str,
        source: Optional[ContentNode],
        report: SyncReport,
    ) -> None:
        for e in plan.internal_deletes + plan.outbound_deletes:
            if self._safe("delete_edge", lambda e=e: self.store.delete_edge(e.id)):
                report.edges_deleted += 1
                logger.info("[link-sync] DELETED %s edge %s -> %s", e.edge_type.value, e.source_node_id, e.target_node_id)

        for draft in plan.internal_creates:
            edge = Edge(
                id=new_id(),
                project_id=project_id,
                source_node_id=plan.source_node_id,
                target_node_id=draft.target_node_id,
                edge_type=EdgeType.INTERLINKS,
                source_handle=draft.source_handle,
                target_handle=draft.target_handle,
                label=draft.label,
            )
            if self._safe("create_edge", lambda: self.store.create_edge(edge)):
                report.edges_created += 1
                logger.info("[link-sync] CREATED interlinks edge -> %s (%s)", draft.slug, draft.label)

        limit: Optional[LimitCheck] = None
        created_nodes = 0
        source_pos = source.position if source else None
        for target in plan.external_targets:
            node_id = target.node_id
            target_pos: Optional[Position] = None

            if target.needs_node:
                if limit is None:
                    limit = self._check_limit(project_id)
                if not limit.permits(created_nodes):
                    logger.info(
                        "[link-sync] Node limit reached (%d/%d), skipping external node for %s",
                        limit.current + created_nodes,
                        limit.limit,
                        target.href,
                    )
                    report.warnings.append(
                        f"{node_limit_message(limit.limit)} No node was created for {target.href}."
                    )
                    continue
                target_pos = self._external_position(source_pos, created_nodes)
                node = self._safe(
                    "create_node",
                    lambda: self.store.create_node(self._external_node(project_id, target, target_pos)),
                )
                if node is None:
                    continue
                node_id = node.id
                created_nodes += 1
                report.external_nodes_created += 1
                logger.info("[link-sync] Created external node %r (%s)", target.anchor_text, target.href)
            elif not target.needs_edge:
                continue
            else:
                target_pos = target.position

            src_handle, tgt_handle = assign_handles(source_pos, target_pos)
            edge = Edge(
                id=new_id(),
                project_id=project_id,
                source_node_id=plan.source_node_id,
                target_node_id=node_id,
                edge_type=EdgeType.OUTBOUND,
                source_handle=src_handle,
                target_handle=tgt_handle,
                label=outbound_label(target.anchor_text),
            )
            if self._safe("create_edge", lambda: self.store.create_edge(edge)):
                report.edges_created += 1
                logger.info("[link-sync] CREATED outbound edge -> %s", target.href)

    def _check_limit(self, project_id: str) -> LimitCheck:
        if self.gate is None:
            return LimitCheck(allowed=True, current=0, limit=UNLIMITED)
        try:
            return self.gate.check_node_limit(project_id)
        except Exception:
            logger.exception("[link-sync] Could not check node limit for project %s, proceeding", project_id)
            return LimitCheck(allowed=True, current=0, limit=UNLIMITED)

    @staticmethod
    def _external_position(source_pos: Optional[Position], index: int) -> Position:
        base_x = source_pos.x if source_pos else 0.0
        base_y = source_pos.y if source_pos else 0.0
        return Position(x=base_x + EXTERNAL_OFFSET_X, y=base_y + EXTERNAL_STEP_Y * index)

    @staticmethod
    def _external_node(project_id: str, target: ExternalTarget, position: Position) -> ContentNode:
        return ContentNode(
            id=new_id(),
            project_id=project_id,
            node_type=NodeType.EXTERNAL,
            title=target.anchor_text,
            url=target.href,
            status=NodeStatus.PUBLISHED,
            position=position,
        )

    @staticmethod
    def _safe(op: str, fn: Callable[[], T]) -> Optional[T]:
        try:
            return fn()
        except Exception:
            logger.exception("[link-sync] Graph store %s failed; will retry on next sync", op)
            return None


def reconcile_content_links(
    store: GraphStore,
    source_node_id: str,
    project_id: str,
    domain: Optional[str],
    content: Optional[str],
    *,
    gate: Optional[ResourceLimitGate] = None,
    previous_content: Optional[str] = None,
) -> SyncReport:
    """Convenience wrapper around ContentLinkSync.reconcile_content_links()."""
    return ContentLinkSync(store, gate).reconcile_content_links(
        source_node_id, project_id, domain, content, previous_content=previous_content
    )


def remove_edge_and_unlink(store: GraphStore, edge: Edge) -> UnlinkReport:
    """Convenience wrapper around ContentLinkSync.remove_edge_and_unlink()."""
    return ContentLinkSync(store).remove_edge_and_unlink(edge)


__all__ = [
    "ContentLinkSync",
    "reconcile_content_links",
    "remove_edge_and_unlink",
]
