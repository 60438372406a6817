from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Tag

from payrates.dataset.merge import entry_records
from payrates.extract.classification import first_classification_in, rcmp_code_in
from payrates.extract.money import as_number, parse_money
from payrates.extract.textnorm import clean
from payrates.ingest.dom import extract_grid, previous_heading, table_caption, text_of

logger = logging.getLogger(__name__)

_RE_DATE_HEADER = re.compile(r"effective\s*date", re.IGNORECASE)
_RE_STEP_N = re.compile(r"step[-\s]*(\d+)", re.IGNORECASE)
_RE_BARE_INT = re.compile(r"^(\d+)$")
_RE_MINIMUM = re.compile(r"minimum", re.IGNORECASE)
_RE_MAXIMUM = re.compile(r"maximum", re.IGNORECASE)
# "100,220 to 114,592"
_RE_TO_RANGE = re.compile(r"(\d[\d,]+)\s+to\s+\$?\s*(\d[\d,]+)", re.IGNORECASE)


@dataclass(frozen=True)
class _StepCol:
    index: int
    step: int


def _classification(table: Tag) -> Optional[str]:
    caption = table_caption(table)
    code = first_classification_in(caption) or rcmp_code_in(caption)
    if code:
        return code
    heading = previous_heading(table)
    if heading is None:
        return None
    return first_classification_in(text_of(heading))


def _step_columns(headers: List[str], date_col: int) -> List[_StepCol]:
    cols: List[_StepCol] = []
    for i, h in enumerate(headers):
        if i == date_col:
            continue
        text = clean(h)
        m = _RE_STEP_N.search(text) or _RE_BARE_INT.match(text)
        if m:
            cols.append(_StepCol(i, int(m.group(1))))
        elif _RE_MINIMUM.search(text):
            cols.append(_StepCol(i, 1))
        elif _RE_MAXIMUM.search(text):
            cols.append(_StepCol(i, 2))

    if not cols:
        cols = [_StepCol(i, i - date_col) for i in range(date_col + 1, len(headers))]
    return cols


def _positive(text: str) -> Optional[float]:
    v = parse_money(text)
    if math.isnan(v) or v <= 0:
        return None
    return as_number(v)


def parse_unrepresented_page(soup: BeautifulSoup, source: Optional[str] = None) -> Dict[str, dict]:
    """
    Unrepresented / senior excluded pages: one table per classification, captioned
    like "Code: 30100 AS-07 - Annual rates of pay (in dollars)".

    Unlike the appendix parser, cells that do not parse are dropped here.
    """
    result: Dict[str, dict] = {}

    for table in soup.find_all("table"):
        code = _classification(table)
        if not code:
            logger.debug("skipping table without classification (caption=%r)", table_caption(table))
            continue

        grid = extract_grid(table)
        if grid.empty:
            continue

        date_col = next((i for i, h in enumerate(grid.headers) if _RE_DATE_HEADER.search(clean(h))), -1)
        if date_col < 0:
            logger.debug("%s: no effective date column in %s", code, grid.headers)
            continue

        cols = _step_columns(grid.headers, date_col)
        if not cols:
            continue

        for row in grid.rows:
            date = clean(row[date_col]) if date_col < len(row) else ""
            if not date:
                continue
            rec: dict = {"effective-date": date}
            if source:
                rec["_source"] = source

            for col in cols:
                cell = clean(row[col.index]) if col.index < len(row) else ""
                if not cell:
                    continue
                m = _RE_TO_RANGE.search(cell)
                if m:
                    # this page family only has min/max in this shape
                    lo, hi = _positive(m.group(1)), _positive(m.group(2))
                    if lo is not None:
                        rec["step-1"] = lo
                    if hi is not None:
                        rec["step-2"] = hi
                    continue
                amount = _positive(cell)
                if amount is not None:
                    rec[f"step-{col.step}"] = amount

            if any(k.startswith("step-") for k in rec):
                entry_records(result, code).append(rec)

    return result
