from __future__ import annotations

from pathlib import Path
from typing import List

import yaml

UNREPRESENTED_MARKER = "rates-pay-unrepresented"

_FAMILIES = ("collective_agreements", "unrepresented")


def is_unrepresented_url(url: str) -> bool:
    return UNREPRESENTED_MARKER in (url or "")


def load_urls(path: Path) -> List[str]:
    """
    Read the URL catalogue. Accepts either the grouped mapping
    (collective_agreements / unrepresented, in that order) or a plain list.
    """
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or []
    if isinstance(data, list):
        urls = data
    elif isinstance(data, dict):
        unknown = set(data) - set(_FAMILIES)
        if unknown:
            raise ValueError(f"unknown URL groups in {path}: {sorted(unknown)}")
        urls = [u for fam in _FAMILIES for u in (data.get(fam) or [])]
    else:
        raise ValueError(f"{path}: expected a list or mapping of URLs")

    out: List[str] = []
    for u in urls:
        if not isinstance(u, str) or not u.strip():
            raise ValueError(f"{path}: invalid URL entry {u!r}")
        out.append(u.strip())
    return out
