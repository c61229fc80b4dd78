"""
Link extraction for article HTML.

- Parse <a> tags from an HTML fragment, document order preserved
- Anchor text is the plain text inside the tag (nested markup stripped)
- Drop links with an empty href or blank anchor text
- Never raise on bad markup: fall back to a regex scan and return whatever
  could be recovered

Classification (internal vs external) lives in `link_classifier`.
"""

from __future__ import annotations

import html as html_lib
import logging
import re
from dataclasses import dataclass, asdict
from typing import Dict, List

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

# <a ... href="..." ...>inner</a>, non-greedy across newlines. The href may be
# double-quoted, single-quoted or bare (<a href=/guide>).
ANCHOR_RE = re.compile(
  r"<a\b[^>]*?\shref\s*=\s*(?:([\"'])(.*?)\1|([^\s\"'>]+))[^>]*>(.*?)</a\s*>",
  re.IGNORECASE | re.DOTALL,
)
_TAG_RE = re.compile(r"<[^>]+>")


@dataclass(frozen=True)
class ExtractedLink:
  """A hyperlink discovered in article HTML."""

  href: str
  anchor_text: str

  def as_dict(self) -> Dict[str, str]:
    return asdict(self)


def _keep(href: str, text: str) -> bool:
  return bool(href) and bool(text)


def _extract_with_dom(html: str) -> List[ExtractedLink]:
  soup = BeautifulSoup(html, "html.parser")
  results: List[ExtractedLink] = []
  for a in soup.find_all("a"):
    href = (a.get("href") or "").strip()
    text = a.get_text().strip()
    if _keep(href, text):
      results.append(ExtractedLink(href=href, anchor_text=text))
  return results


def _extract_with_regex(html: str) -> List[ExtractedLink]:
  results: List[ExtractedLink] = []
  for match in ANCHOR_RE.finditer(html):
    href = anchor_href(match)
    text = html_lib.unescape(_TAG_RE.sub("", anchor_inner_html(match))).strip()
    if _keep(href, text):
      results.append(ExtractedLink(href=href, anchor_text=text))
  return results


def anchor_href(match: "re.Match[str]") -> str:
  """Decoded href of an ANCHOR_RE match, whichever quoting style was used."""
  raw = match.group(2) if match.group(1) else match.group(3)
  return html_lib.unescape(raw or "").strip()


def anchor_inner_html(match: "re.Match[str]") -> str:
  return match.group(4)


def extract_links(html: str) -> List[ExtractedLink]:
  """
  Extract hyperlinks from an HTML fragment.

  Args:
    html: Raw article HTML. May be malformed or unbalanced.

  Returns:
    List[ExtractedLink] in document order. Duplicates are kept; callers
    decide how repeated targets collapse.
  """
  if not html:
    return []
  try:
    return _extract_with_dom(html)
  except Exception:
    # Be resilient to bad markup: return whatever the regex can recover
    logger.warning("DOM parse failed; falling back to regex link extraction", exc_info=True)
    return _extract_with_regex(html)


__all__ = [
  "ANCHOR_RE",
  "ExtractedLink",
  "anchor_href",
  "anchor_inner_html",
  "extract_links",
]
