"""
Table -> rate records.

A "block" is one effective-date snapshot: {"effective-date": ..., "step-1": ..., ...}.
Two layouts are understood:

* legend mode: headers are legend symbols ("$", "A", ...) and each symbol column is
  one complete snapshot, steps stacked down the rows;
* row mode: every body row is one snapshot, step columns picked from the headers.

Blocks are not yet attached to a classification; page parsers do that.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from payrates.extract.classification import first_classification_in, implicit_as_level
from payrates.extract.money import Number, Range, RawText, as_number, parse_cell, parse_money, parse_range
from payrates.extract.textnorm import clean
from payrates.ingest.dom import Grid

logger = logging.getLogger(__name__)

_RE_STEP_HEADER = re.compile(r"^(step(\s*\d+)?|\d+|rate\s*\d+|salary|pay|range)$", re.IGNORECASE)

# "June 21, 2020" anywhere, or an ISO date
_RE_MONTH_DATE = re.compile(r"\b[A-Z][a-z]+ \d{1,2},? \d{4}\b")
_RE_ISO_DATE = re.compile(r"\b\d{4}-\d{2}-\d{2}\b")

ROW_CODE_CELLS = 3


@dataclass(frozen=True)
class StepColumn:
    idx: int
    is_range: bool


# ---------- Step A: columns ----------


def step_columns(headers: List[str]) -> List[StepColumn]:
    cols: List[StepColumn] = []
    for i, h in enumerate(headers):
        t = (h or "").lower()
        if "effective" in t or "date" in t:
            continue
        is_range = "range" in t
        if _RE_STEP_HEADER.match(t) or is_range:
            cols.append(StepColumn(idx=i, is_range=is_range))

    if not cols:
        # first column is usually the date/label
        cols = [
            StepColumn(idx=i, is_range="range" in (headers[i] or "").lower())
            for i in range(1, len(headers))
        ]
    return cols


def _has_steps(record: dict) -> bool:
    return any(k.startswith("step-") for k in record)


def _new_record(effective_date: Optional[str], source: Optional[str]) -> dict:
    rec: dict = {"effective-date": effective_date}
    if source:
        rec["_source"] = source
    return rec


# ---------- Step B: legend mode ----------


def _legend_blocks(grid: Grid, legend: Dict[str, str], source: Optional[str]) -> Optional[List[dict]]:
    symbol_headers = [clean(h) for i, h in enumerate(grid.headers) if i > 0 and legend.get(clean(h))]
    if not symbol_headers:
        return None

    out: List[dict] = []
    for pos, symbol in enumerate(symbol_headers):
        rec = _new_record(legend[symbol], source)
        # the label column is not in symbol_headers, hence +1
        col = pos + 1
        n = 1
        for row in grid.rows:
            cell = clean(row[col]) if col < len(row) else ""
            if not cell:
                continue
            rng = parse_range(cell)
            if rng is not None:
                rec[f"step-{n}"] = as_number(rng[0])
                rec[f"_raw-step-{n}"] = cell
                rec[f"step-{n + 1}"] = as_number(rng[1])
                rec[f"_raw-step-{n + 1}"] = cell
                n += 2
                continue
            v = parse_money(cell)
            if not math.isnan(v):
                rec[f"step-{n}"] = as_number(v)
                n += 1
        if _has_steps(rec):
            out.append(rec)
    return out


# ---------- Step C: row mode ----------


def _has_date(text: str) -> bool:
    return bool(text) and bool(_RE_MONTH_DATE.search(text) or _RE_ISO_DATE.search(text))


def row_effective_date(first_cell: str, caption: str, preceding_text: str) -> Optional[str]:
    """
    The whole text of the first of (first cell, caption, preceding text) that carries
    a date. Labels such as "A) Effective June 21, 2020" are kept as authored.
    """
    for candidate in (first_cell, caption, preceding_text):
        if _has_date(candidate):
            return candidate
    return None


def _row_blocks(
    grid: Grid,
    cols: List[StepColumn],
    *,
    caption: str,
    preceding_text: str,
    source: Optional[str],
) -> List[dict]:
    out: List[dict] = []
    for row in grid.rows:
        first = clean(row[0]) if row else ""
        rec = _new_record(row_effective_date(first, caption, preceding_text), source)
        n = 1
        for sc in cols:
            cell = clean(row[sc.idx]) if sc.idx < len(row) else ""
            if not cell:
                continue
            parsed = parse_cell(cell, expect_range=sc.is_range)
            if isinstance(parsed, Range):
                rec[f"step-{n}"] = as_number(parsed.low)
                rec[f"_raw-step-{n}"] = parsed.raw
                rec[f"step-{n + 1}"] = as_number(parsed.high)
                rec[f"_raw-step-{n + 1}"] = parsed.raw
                n += 2
            elif isinstance(parsed, RawText):
                # kept verbatim so nothing is lost; audit flags it later
                rec[f"step-{n}"] = parsed.text
                n += 1
            elif isinstance(parsed, Number):
                rec[f"step-{n}"] = as_number(parsed.value)
                n += 1
        if _has_steps(rec):
            out.append(rec)
    return out


def build_rate_blocks(
    grid: Grid,
    *,
    caption: str = "",
    preceding_text: str = "",
    legend: Optional[Dict[str, str]] = None,
    source: Optional[str] = None,
) -> List[dict]:
    if grid.empty:
        return []

    cols = step_columns(grid.headers)

    if legend:
        blocks = _legend_blocks(grid, legend, source)
        if blocks is not None:
            logger.debug("legend mode: %d block(s)", len(blocks))
            return blocks

    return _row_blocks(grid, cols, caption=caption, preceding_text=preceding_text, source=source)


# ---------- Step D: several classifications in one table ----------


def row_classification(row: List[str], ambient: Optional[str]) -> Optional[str]:
    for cell in row[:ROW_CODE_CELLS]:
        text = clean(cell)
        code = first_classification_in(text)
        if code:
            return code
        if ambient and ambient.startswith("AS"):
            code = implicit_as_level(text)
            if code:
                return code
    return None


def detect_row_classifications(rows: List[List[str]], ambient: Optional[str]) -> Dict[str, List[List[str]]]:
    """Group rows by the code found in their first cells, in first-appearance order."""
    grouped: Dict[str, List[List[str]]] = {}
    for row in rows:
        code = row_classification(row, ambient)
        if code:
            grouped.setdefault(code, []).append(row)
    return grouped


def unclassified_rows(rows: List[List[str]], ambient: Optional[str]) -> List[List[str]]:
    """Rows without a code of their own; they belong to the table's ambient classification."""
    return [row for row in rows if row_classification(row, ambient) is None]


def build_rate_blocks_for_rows(
    headers: List[str],
    rows: List[List[str]],
    *,
    caption: str = "",
    legend: Optional[Dict[str, str]] = None,
    source: Optional[str] = None,
) -> List[dict]:
    """Steps A-C on a row subset; only the caption backs up a missing row date."""
    return build_rate_blocks(
        Grid(headers=headers, rows=rows),
        caption=caption,
        preceding_text="",
        legend=legend,
        source=source,
    )
