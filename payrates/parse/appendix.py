from __future__ import annotations

import logging
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Tag

from payrates.dataset.merge import entry_records, normalize_entry
from payrates.extract.classification import first_classification_in, split_code
from payrates.extract.rate_blocks import (
    build_rate_blocks,
    build_rate_blocks_for_rows,
    detect_row_classifications,
    unclassified_rows,
)
from payrates.ingest.dom import (
    collect_section_content,
    enclosing_pdf_section_tables,
    extract_grid,
    find_section_starts,
    preceding_text,
    previous_heading,
    table_caption,
    tables_in,
    text_of,
)
from payrates.ingest.legend import parse_legend

logger = logging.getLogger(__name__)


def _attach_code(blocks: List[dict], code: str) -> List[dict]:
    group, level = split_code(code)
    if group is None:
        return blocks
    for b in blocks:
        b["group"] = group
        b["level"] = level
    return blocks


def _section_tables(start: Tag, nodes: List[Tag]) -> List[Tag]:
    # tables of an enclosing pdf-section come first, then the section's own
    out: List[Tag] = []
    seen: set[int] = set()
    for t in enclosing_pdf_section_tables(start) + tables_in(nodes):
        if id(t) in seen:
            continue
        seen.add(id(t))
        out.append(t)
    return out


def table_classification(table: Tag, start: Tag) -> Optional[str]:
    """Caption, then the nearest preceding heading, then the section heading."""
    code = first_classification_in(table_caption(table))
    if code:
        return code
    heading = previous_heading(table)
    if heading is not None:
        code = first_classification_in(text_of(heading))
        if code:
            return code
    return first_classification_in(text_of(start))


def parse_appendix_document(
    soup: BeautifulSoup, source: Optional[str] = None, *, post_process: bool = True
) -> Dict[str, dict]:
    """
    Collective-agreement page -> {code: {"annual-rates-of-pay": [records]}}.

    Every "Appendix A" / rates heading is handled on its own; results for a code
    found under several headings are appended. With `post_process` each code's
    records are renumbered and deduplicated; without it the raw blocks (including
    their group/level decomposition) are returned.
    """
    result: Dict[str, dict] = {}

    for start in find_section_starts(soup):
        nodes = collect_section_content(start)
        legend = parse_legend(nodes)
        tables = _section_tables(start, nodes)
        logger.debug(
            "section %r: %d node(s), %d table(s), legend=%s", text_of(start), len(nodes), len(tables), legend
        )

        for table in tables:
            use = table_classification(table, start)
            caption = table_caption(table)
            grid = extract_grid(table)

            by_row = detect_row_classifications(grid.rows, use)
            if by_row:
                leftover = unclassified_rows(grid.rows, use)
                if use and leftover:
                    by_row.setdefault(use, []).extend(leftover)
                for code, rows in by_row.items():
                    blocks = build_rate_blocks_for_rows(
                        grid.headers, rows, caption=caption, legend=legend, source=source
                    )
                    if blocks:
                        entry_records(result, code).extend(_attach_code(blocks, code))
                continue

            if not use:
                logger.debug("skipping table without classification (caption=%r)", caption)
                continue

            blocks = build_rate_blocks(
                grid,
                caption=caption,
                preceding_text=preceding_text(table),
                legend=legend,
                source=source,
            )
            if blocks:
                entry_records(result, use).extend(_attach_code(blocks, use))

    if post_process:
        for code in result:
            records = entry_records(result, code)
            records[:] = normalize_entry(records)
    return result
