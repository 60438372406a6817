from __future__ import annotations

import re
from typing import Dict, Optional, Tuple

from payrates.extract.textnorm import clean

_RE_AS_DEVELOPMENTAL = re.compile(r"\bAS\s*-\s*Develop(ment|mental)\b", re.IGNORECASE)

# Priority order matters: each pattern is searched over the whole text before the next.
_CODE_PATTERNS: list[re.Pattern] = [
    # NU-CHN-03, CO-RCMP-4, AS-07
    re.compile(r"\b([A-Z]{1,4}(?:-[A-Z]{2,4})*-\d{1,3})\b"),
    # AS-02, CS-1
    re.compile(r"\b([A-Z]{1,4}-\d{1,3})\b"),
    # AI, GS, EX
    re.compile(r"\b([A-Z]{2,4})\b"),
]

_RE_SINGLE_LETTER = re.compile(r"^[A-Z]$")
_RE_APPENDIX = re.compile(r"^appendix$", re.IGNORECASE)
_RE_SHORT_LEVEL = re.compile(r"^([A-Z]{2,4})-(\d)$")
_RE_TRAILING_PUNCT = re.compile(r"[,:;.]$")

_RE_GROUP_LEVEL = re.compile(r"^([A-Z]{1,4})(?:-(\d{1,3}))?$")
_RE_LEADING_GROUP = re.compile(r"^([A-Z]{2,4})")

_RE_LONE_DIGIT = re.compile(r"^\s*(\d)\s*$")

RCMP_RANKS: Dict[str, str] = {
    "inspector": "CO-RCMP-01",
    "superintendent": "CO-RCMP-02",
    "chief superintendent": "CO-RCMP-03",
    "assistant commissioner (1)": "CO-RCMP-04",
    "assistant commissioner (2)": "CO-RCMP-05",
    "deputy commissioner": "CO-RCMP-06",
}


def first_classification_in(text: Optional[str]) -> Optional[str]:
    """
    Pull the first plausible classification code out of heading/caption/cell text.

    "AS-1 salary"             -> "AS-01"
    "AS - Developmental rates" -> "AS-DEV"
    "NU-CHN-03 (Nursing)"     -> "NU-CHN-03"
    "AI, Air Traffic Control" -> "AI"
    "Appendix A"              -> None
    """
    txt = clean(text)
    if not txt:
        return None

    if _RE_AS_DEVELOPMENTAL.search(txt):
        return "AS-DEV"

    for pat in _CODE_PATTERNS:
        m = pat.search(txt)
        if not m:
            continue
        cand = _RE_TRAILING_PUNCT.sub("", m.group(1))
        if _RE_SINGLE_LETTER.match(cand) or _RE_APPENDIX.match(cand):
            continue
        return _RE_SHORT_LEVEL.sub(lambda mm: f"{mm.group(1)}-0{mm.group(2)}", cand)
    return None


def split_code(code: str) -> Tuple[Optional[str], Optional[str]]:
    """
    "AS-07" -> ("AS", "07"); "AI" -> ("AI", None); "NU-CHN-03" -> ("NU", None).
    """
    m = _RE_GROUP_LEVEL.match(code or "")
    if m:
        return m.group(1), m.group(2)
    mm = _RE_LEADING_GROUP.match(code or "")
    if mm:
        return mm.group(1), None
    return None, None


def rcmp_code_in(text: Optional[str]) -> Optional[str]:
    low = clean(text).lower()
    if not low:
        return None
    # longest rank first so "chief superintendent" is not read as "superintendent"
    for rank in sorted(RCMP_RANKS, key=len, reverse=True):
        if rank in low:
            return RCMP_RANKS[rank]
    return None


def implicit_as_level(cell: Optional[str]) -> Optional[str]:
    """Bare digit 1-8 in an AS table names the level (e.g. "3" -> "AS-03")."""
    m = _RE_LONE_DIGIT.match(cell or "")
    if not m:
        return None
    d = int(m.group(1))
    if 1 <= d <= 8:
        return f"AS-0{d}"
    return None
