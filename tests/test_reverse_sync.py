from contentmap.domain import ContentNode, Edge, EdgeType, NodeType
from contentmap.services.content_sync import ContentLinkSync, remove_edge_and_unlink
from contentmap.services.reverse_sync import (
    external_matcher,
    matcher_for_target,
    slug_matcher,
    unlink_anchors,
)

P = "proj-1"
SCENARIO_HTML = '<p>See <a href="/guide">our guide</a> and <a href="https://external.com/x">this</a>.</p>'


def _synced(store):
    source = store.add_node(P, NodeType.PILLAR, "Source", slug="source", x=0, y=0)
    guide = store.add_node(P, NodeType.CLUSTER, "Guide", slug="guide", x=400, y=0)
    store.set_article(source.id, P, SCENARIO_HTML)
    ContentLinkSync(store).reconcile_content_links(source.id, P, "site.com", SCENARIO_HTML)
    return source, guide


def _edge(store, source, edge_type):
    return next(e for e in store.edges_from(source.id) if e.edge_type is edge_type)


def test_deleting_interlinks_edge_unwraps_anchor(store):
    source, _ = _synced(store)
    edge = _edge(store, source, EdgeType.INTERLINKS)

    report = remove_edge_and_unlink(store, edge)

    assert report.edge_deleted is True
    assert report.content_mutated is True
    assert report.anchors_removed == 1
    assert store.articles[source.id].content == (
        '<p>See our guide and <a href="https://external.com/x">this</a>.</p>'
    )
    assert store.get_edge(edge.id) is None


def test_unlinked_content_does_not_recreate_edge(store):
    source, _ = _synced(store)
    remove_edge_and_unlink(store, _edge(store, source, EdgeType.INTERLINKS))

    html = store.articles[source.id].content
    report = ContentLinkSync(store).reconcile_content_links(source.id, P, "site.com", html)

    assert report.mutations == 0


def test_deleting_outbound_edge_unwraps_external_anchor(store):
    source, _ = _synced(store)

    report = remove_edge_and_unlink(store, _edge(store, source, EdgeType.OUTBOUND))

    assert report.anchors_removed == 1
    assert store.articles[source.id].content == '<p>See <a href="/guide">our guide</a> and this.</p>'


def test_all_matching_anchors_are_unwrapped(store):
    source, guide = _synced(store)
    html = '<p><a href="/guide">one</a>, <a href="https://site.com/guide/">two</a>, <a href="/other">three</a></p>'
    store.set_article(source.id, P, html)

    report = remove_edge_and_unlink(store, _edge(store, source, EdgeType.INTERLINKS))

    assert report.anchors_removed == 2
    assert store.articles[source.id].content == '<p>one, two, <a href="/other">three</a></p>'


def test_no_matching_anchor_is_a_silent_noop(store):
    source, _ = _synced(store)
    store.set_article(source.id, P, "<p>rewritten by hand</p>")

    report = remove_edge_and_unlink(store, _edge(store, source, EdgeType.INTERLINKS))

    assert report.edge_deleted is True
    assert report.content_mutated is False
    assert [c for c in store.calls if c[0] == "update_article_content"] == []


def test_internal_target_without_project_domain_leaves_content(store):
    source, _ = _synced(store)
    store.domains[P] = None

    report = remove_edge_and_unlink(store, _edge(store, source, EdgeType.INTERLINKS))

    assert report.edge_deleted is True
    assert report.content_mutated is False
    assert store.articles[source.id].content == SCENARIO_HTML


def test_user_edge_deletion_also_unwraps(store):
    source, guide = _synced(store)
    hierarchy = store.add_edge(Edge("h1", P, source.id, guide.id, EdgeType.HIERARCHY))

    report = remove_edge_and_unlink(store, hierarchy)

    assert report.anchors_removed == 1


def test_content_update_failure_is_logged_not_raised(store):
    source, _ = _synced(store)
    store.fail_ops = {"update_article_content"}

    report = remove_edge_and_unlink(store, _edge(store, source, EdgeType.INTERLINKS))

    assert report.edge_deleted is True
    assert report.content_mutated is False
    assert store.articles[source.id].content == SCENARIO_HTML


def test_unlink_anchors_leaves_other_bytes_untouched():
    html = '<div class="x">\n  <a  href=\'/guide\' title="G">the <b>guide</b></a> &amp; more\n</div>'

    out, removed = unlink_anchors(html, slug_matcher("guide", "site.com"))

    assert removed == 1
    assert out == '<div class="x">\n  the <b>guide</b> &amp; more\n</div>'


def test_unlink_anchors_without_match_returns_input():
    html = '<p><a href="/a">a</a></p>'
    assert unlink_anchors(html, lambda href, inner: False) == (html, 0)
    assert unlink_anchors("", lambda href, inner: True) == ("", 0)


def test_external_matcher_compares_normalized_urls():
    match = external_matcher("https://partner.io/deal", "site.com")
    assert match("http://www.partner.io/deal/", "Partner")
    assert not match("https://partner.io/other", "Partner")
    assert not match("/deal", "Partner")


def test_unlink_anchors_handles_unquoted_href():
    html = "<p>See <a href=/guide>our guide</a> and <a href=/faq>faq</a>.</p>"

    out, removed = unlink_anchors(html, slug_matcher("guide", "site.com"))

    assert removed == 1
    assert out == "<p>See our guide and <a href=/faq>faq</a>.</p>"


def test_unquoted_anchor_edge_stays_deleted(store):
    source = store.add_node(P, NodeType.PILLAR, "Source", slug="source", x=0, y=0)
    store.add_node(P, NodeType.CLUSTER, "Guide", slug="guide", x=400, y=0)
    html = "<p>See <a href=/guide>our guide</a>.</p>"
    store.set_article(source.id, P, html)
    sync = ContentLinkSync(store)
    created = sync.reconcile_content_links(source.id, P, "site.com", html)
    assert created.edges_created == 1

    report = sync.remove_edge_and_unlink(_edge(store, source, EdgeType.INTERLINKS))

    assert report.anchors_removed == 1
    assert store.articles[source.id].content == "<p>See our guide.</p>"
    again = sync.reconcile_content_links(source.id, P, "site.com", store.articles[source.id].content)
    assert again.edges_created == 0
    assert store.edges_from(source.id) == []


def test_matcher_for_internal_target_needs_slug_and_domain():
    node = ContentNode("n1", P, NodeType.PLANNED, "Untitled")
    assert matcher_for_target(node, "site.com") is None
    with_slug = ContentNode("n2", P, NodeType.CLUSTER, "Guide", slug="guide")
    assert matcher_for_target(with_slug, None) is None
    assert matcher_for_target(with_slug, "site.com") is not None
