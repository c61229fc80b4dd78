import pytest

from contentmap.services import link_extractor
from contentmap.services.link_extractor import ANCHOR_RE, anchor_href, extract_links


def test_extract_links_preserves_document_order_and_duplicates():
    html = (
        '<p><a href="/guide">Guide</a> and <a href="https://ext.com/x">this</a>'
        ' again <a href="/guide">Read the guide</a></p>'
    )

    links = extract_links(html)

    assert [(l.href, l.anchor_text) for l in links] == [
        ("/guide", "Guide"),
        ("https://ext.com/x", "this"),
        ("/guide", "Read the guide"),
    ]


def test_extract_links_strips_nested_markup_from_anchor_text():
    links = extract_links('<a href="/a"><strong>Bold</strong> <em>text</em></a>')
    assert links[0].anchor_text == "Bold text"


def test_extract_links_drops_empty_href_and_blank_text():
    html = '<a href="">empty</a><a href="/x">   </a><a>no href</a><a href="/ok">ok</a>'
    assert [l.href for l in extract_links(html)] == ["/ok"]


@pytest.mark.parametrize("html", ["", None, "<p>plain text</p>", "<a href='/x'"])
def test_extract_links_never_raises(html):
    assert extract_links(html) == []


def test_extract_links_tolerates_unbalanced_markup():
    links = extract_links('<div><p><a href="/x">X</a><span></div><a href="/y">Y')
    assert [l.href for l in links][:1] == ["/x"]


def test_regex_fallback_when_dom_parse_fails(monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("parser exploded")

    monkeypatch.setattr(link_extractor, "BeautifulSoup", boom)

    links = extract_links('<p><a class="c" href="/guide?a=1&amp;b=2"><b>The</b> guide</a></p>')

    assert len(links) == 1
    assert links[0].href == "/guide?a=1&b=2"
    assert links[0].anchor_text == "The guide"


def test_regex_does_not_match_data_href(monkeypatch):
    monkeypatch.setattr(link_extractor, "BeautifulSoup", lambda *a, **k: 1 / 0)
    assert extract_links('<a data-href="/x">X</a>') == []


def test_regex_fallback_reads_unquoted_and_single_quoted_hrefs(monkeypatch):
    monkeypatch.setattr(link_extractor, "BeautifulSoup", lambda *a, **k: 1 / 0)

    links = extract_links("<a href=/guide>Guide</a> <a href='/faq' id=f>FAQ</a>")

    assert [(l.href, l.anchor_text) for l in links] == [("/guide", "Guide"), ("/faq", "FAQ")]


def test_dom_and_regex_agree_on_unquoted_href():
    html = '<p>See <a href=/guide class=x>our guide</a>.</p>'
    assert [l.href for l in extract_links(html)] == ["/guide"]
    assert [anchor_href(m) for m in ANCHOR_RE.finditer(html)] == ["/guide"]
