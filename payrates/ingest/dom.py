"""
Small document-tree surface over BeautifulSoup.

Parsers only ever need: headings and their levels, following/preceding siblings,
table captions and the tables under a set of nodes. Keeping that here means the
extraction logic never touches bs4 directly beyond the `Tag` type.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup, Tag

from payrates.extract.textnorm import clean

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]

_RE_HEADING = re.compile(r"^h([1-6])$")

# Headings that open an "Appendix A" / rates-of-pay section
_SECTION_PATTERNS = [
    re.compile(r"appendix\s*a\b"),
    re.compile(r"\b(annual\s+)?rates\s+of\s+pay\b"),
    re.compile(r"\brates\b"),
    re.compile(r"\bsalary\s+rates\b"),
]


@dataclass
class Grid:
    headers: List[str] = field(default_factory=list)
    rows: List[List[str]] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.headers or not self.rows


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def text_of(node: Optional[Tag]) -> str:
    if node is None:
        return ""
    return clean(node.get_text(" "))


# ---------- tables ----------


def _cells(row: Tag) -> List[str]:
    return [text_of(c) for c in row.find_all(["th", "td"])]


def extract_grid(table: Tag) -> Grid:
    """
    Headers: first <thead> row, else the first row's <th> cells, else the first
    row's <td> cells relabelled "Column 1..N". Body: <tbody> rows, else every row
    after the first.
    """
    headers: List[str] = []
    thead = table.find("thead")
    if thead is not None:
        first = thead.find("tr")
        if first is not None:
            headers = _cells(first)
    else:
        first = table.find("tr")
        if first is not None:
            ths = first.find_all("th")
            if ths:
                headers = [text_of(th) for th in ths]
            else:
                headers = [f"Column {i + 1}" for i, _ in enumerate(first.find_all("td"))]

    body_rows = table.select("tbody tr")
    if not body_rows:
        body_rows = table.find_all("tr")[1:]

    return Grid(headers=headers, rows=[_cells(tr) for tr in body_rows])


def table_caption(table: Tag) -> str:
    return text_of(table.find("caption"))


def previous_heading(node: Tag) -> Optional[Tag]:
    """Nearest preceding sibling heading, any level."""
    return node.find_previous_sibling(HEADING_TAGS)


def preceding_text(node: Tag) -> str:
    """Text of the element immediately before `node` (text nodes skipped)."""
    return text_of(node.find_previous_sibling())


def tables_in(nodes: Iterable[Tag]) -> List[Tag]:
    """Every table that is, or sits under, one of `nodes`; each table once, document order per node."""
    out: List[Tag] = []
    seen: set[int] = set()
    for node in nodes:
        candidates = [node] if node.name == "table" else []
        candidates.extend(node.find_all("table"))
        for t in candidates:
            if id(t) in seen:
                continue
            seen.add(id(t))
            out.append(t)
    return out


def enclosing_pdf_section_tables(heading: Tag) -> List[Tag]:
    section = heading.find_parent("section", class_="pdf-section")
    if section is None:
        return []
    return section.find_all("table")


# ---------- sections ----------


def heading_level(node: Tag) -> Optional[int]:
    m = _RE_HEADING.match((getattr(node, "name", None) or "").lower())
    return int(m.group(1)) if m else None


def find_section_starts(soup: BeautifulSoup) -> List[Tag]:
    out: List[Tag] = []
    for h in soup.find_all(HEADING_TAGS):
        t = text_of(h).lower()
        if any(p.search(t) for p in _SECTION_PATTERNS):
            out.append(h)
    return out


def collect_section_content(heading: Tag) -> List[Tag]:
    """
    Following sibling elements up to (not including) the next heading at the same
    or a higher level. Deeper headings stay inside the section.
    """
    start_level = heading_level(heading) or 6
    out: List[Tag] = []
    for sib in heading.find_next_siblings():
        lvl = heading_level(sib)
        if lvl is not None and lvl <= start_level:
            break
        out.append(sib)
    return out
