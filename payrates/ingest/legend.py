from __future__ import annotations

import re
from typing import Dict, Iterable, List

from bs4 import Tag

from payrates.ingest.dom import text_of

LEGEND_WINDOW = 10

# "$) Effective June 21, 2020", "A) Effective June 21 2021"
_RE_LEGEND_ENTRY = re.compile(r"([A-Z$])\)\s*Effective\s+([A-Z][a-z]+\s+\d{1,2},?\s+\d{4})")
_RE_COMMA_BEFORE_YEAR = re.compile(r",(\s+\d{4})")


def _window(node: Tag) -> List[Tag]:
    out = [node]
    for sib in node.find_next_siblings(limit=LEGEND_WINDOW):
        out.append(sib)
    return out


def parse_legend(section_nodes: Iterable[Tag]) -> Dict[str, str]:
    """
    Map legend symbols to effective-date labels for one section.

    The first node mentioning "legend" opens a window of itself plus the next
    LEGEND_WINDOW siblings; entries found there win and scanning stops. Dates keep
    their authored form minus the comma before the year ("June 21 2020").
    """
    legend: Dict[str, str] = {}
    for node in section_nodes:
        if "legend" not in node.get_text(" ").lower():
            continue
        for n in _window(node):
            for m in _RE_LEGEND_ENTRY.finditer(text_of(n)):
                legend[m.group(1)] = _RE_COMMA_BEFORE_YEAR.sub(r"\1", m.group(2))
        if legend:
            break
    return legend
