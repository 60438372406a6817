from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from payrates.extract.textnorm import normalize_dashes

_RE_NOT_NUMERIC = re.compile(r"[^\d.]")

_NUM = r"([\d,.]+)"

# Ordered: explicit numeric pairs first, single-sided approximations last.
_RE_DASH_PAIR = re.compile(rf"{_NUM}\s*-\s*{_NUM}")
_RE_FROM_TO = re.compile(rf"from\s*{_NUM}\s*to\s*{_NUM}", re.IGNORECASE)
_RE_TO = re.compile(rf"{_NUM}\s*to\s*{_NUM}", re.IGNORECASE)
_RE_PLUS = re.compile(rf"{_NUM}\s*\+")
_RE_UP_TO = re.compile(rf"up to\s*{_NUM}", re.IGNORECASE)
_RE_SLASH = re.compile(rf"{_NUM}\s*/\s*{_NUM}")

_RE_RANGE_CUES = re.compile(r"\bto\b|–|—|\s-\s|\+")


def parse_money(text: str) -> float:
    """
    Keep digits and dots only, then parse. Returns NaN when nothing usable is left.
    Minus signs are dropped on purpose: salaries are always positive.
    """
    digits = _RE_NOT_NUMERIC.sub("", text or "")
    if not digits:
        return math.nan
    try:
        return float(digits)
    except ValueError:
        # e.g. "1.2.3"
        return math.nan


def as_number(v: float):
    """Integral floats come back as int so persisted JSON reads 53045, not 53045.0."""
    if isinstance(v, float) and v.is_integer():
        return int(v)
    return v


def _pair(a: str, b: str) -> Optional[Tuple[float, float]]:
    x, y = parse_money(a), parse_money(b)
    if math.isnan(x) or math.isnan(y):
        return None
    return (x, y)


def _single(a: str) -> Optional[Tuple[float, float]]:
    x = parse_money(a)
    if math.isnan(x):
        return None
    return (x, x)


def parse_range(text: str) -> Optional[Tuple[float, float]]:
    """
    Parse "A - B", "from A to B" / "A to B", "A+", "up to B" or "A/B".
    First matching form wins. Open-ended forms come back as a degenerate (x, x)
    pair, which loses information.
    """
    if not text or not text.strip():
        return None
    txt = normalize_dashes(text.strip())

    m = _RE_DASH_PAIR.search(txt)
    if m:
        hit = _pair(m.group(1), m.group(2))
        if hit:
            return hit

    m = _RE_FROM_TO.search(txt) or _RE_TO.search(txt)
    if m:
        hit = _pair(m.group(1), m.group(2))
        if hit:
            return hit

    m = _RE_PLUS.search(txt)
    if m:
        hit = _single(m.group(1))
        if hit:
            return hit

    m = _RE_UP_TO.search(txt)
    if m:
        hit = _single(m.group(1))
        if hit:
            return hit

    m = _RE_SLASH.search(txt)
    if m:
        hit = _pair(m.group(1), m.group(2))
        if hit:
            return hit

    return None


def looks_like_range(cell: str) -> bool:
    """Textual cues only: the word "to", en/em dash, a spaced hyphen or a plus."""
    return bool(_RE_RANGE_CUES.search(cell or ""))


# ---------- tagged cell values ----------


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Range:
    low: float
    high: float
    raw: str


@dataclass(frozen=True)
class RawText:
    text: str


ParsedCell = Union[Number, Range, RawText]


def parse_cell(cell: str, *, expect_range: bool = False) -> Optional[ParsedCell]:
    """
    Row-mode reading of one cell.

    Range-looking cells (or any cell when `expect_range`) become Range, or
    RawText when the range cannot be parsed so the value is not lost. Other
    cells become Number, or None when there is no number at all.
    """
    if expect_range or looks_like_range(cell):
        rng = parse_range(cell)
        if rng is not None:
            return Range(low=rng[0], high=rng[1], raw=cell)
        return RawText(text=cell)

    v = parse_money(cell)
    if math.isnan(v):
        return None
    return Number(value=v)
