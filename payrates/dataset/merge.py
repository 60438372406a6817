"""
Merge & normalize: cross-page aggregation, step renumbering and deduplication.

All functions here return new lists/dicts except `merge_page`, which appends into
the running aggregate (single writer, pages in catalogue order).
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Dict, Iterable, List

from payrates.extract.money import as_number
from payrates.extract.schema import DATE_KEY, RATES_KEY, RAW_STEP_KEY, STEP_KEY
from payrates.scrape.sources import is_unrepresented_url

if TYPE_CHECKING:
    from payrates.fallback.ai_parser import FallbackEntry

logger = logging.getLogger(__name__)

EXCLUDED_SUFFIX = "-EXCLUDED"


def entry_records(dataset: Dict[str, dict], code: str) -> List[dict]:
    """The record list of `code`, created empty if missing."""
    return dataset.setdefault(code, {RATES_KEY: []})[RATES_KEY]


def merge_page(aggregate: Dict[str, dict], page_result: Dict[str, dict], source_url: str) -> Dict[str, dict]:
    """
    Append a page's records onto the aggregate. A code coming from an unrepresented
    page that is already present goes to CODE-EXCLUDED instead, leaving the
    existing entry untouched.
    """
    unrepresented = is_unrepresented_url(source_url)
    for code, entry in page_result.items():
        target = code
        if unrepresented and code in aggregate:
            target = f"{code}{EXCLUDED_SUFFIX}"
            logger.debug("%s already present, storing %s records under %s", code, source_url, target)
        entry_records(aggregate, target).extend(entry.get(RATES_KEY, []))
    return aggregate


def normalize(record: dict) -> dict:
    """
    Renumber steps to step-1..step-N by original index, carrying _raw-step-N along.
    Keeps "effective-date" (None when absent) and the other underscore metadata;
    everything else (group/level) is dropped.
    """
    steps = []
    raw: Dict[int, str] = {}
    for k, v in record.items():
        m = STEP_KEY.match(k)
        if m:
            steps.append((int(m.group(1)), v))
            continue
        m = RAW_STEP_KEY.match(k)
        if m and isinstance(v, str):
            raw[int(m.group(1))] = v
    steps.sort(key=lambda kv: kv[0])

    out: dict = {DATE_KEY: record.get(DATE_KEY)}
    for n, (orig, value) in enumerate(steps, start=1):
        out[f"step-{n}"] = value
        if raw.get(orig):
            out[f"_raw-step-{n}"] = raw[orig]

    for k, v in record.items():
        if k.startswith("_") and not RAW_STEP_KEY.match(k):
            out[k] = v
    return out


def _fingerprint(record: dict) -> str:
    return json.dumps(record, sort_keys=True, ensure_ascii=False, default=str)


def dedupe_identical(records: Iterable[dict]) -> List[dict]:
    seen: set[str] = set()
    out: List[dict] = []
    for r in records:
        fp = _fingerprint(r)
        if fp in seen:
            continue
        seen.add(fp)
        out.append(r)
    return out


def dedupe_by_date(records: List[dict]) -> List[dict]:
    """
    Keep the last record per non-empty effective date; undated records always stay.
    Scans from the end, then reverses back to append order.
    """
    seen: set[str] = set()
    kept: List[dict] = []
    for r in reversed(records):
        date = str(r.get(DATE_KEY) or "").strip()
        if date:
            if date in seen:
                continue
            seen.add(date)
        kept.append(r)
    kept.reverse()
    return kept


def normalize_entry(records: Iterable[dict]) -> List[dict]:
    return dedupe_by_date(dedupe_identical(normalize(r) for r in records))


def sort_dataset(dataset: Dict[str, dict]) -> Dict[str, dict]:
    return {code: dataset[code] for code in sorted(dataset, key=lambda c: c.upper())}


def finalize_dataset(dataset: Dict[str, dict]) -> Dict[str, dict]:
    """normalize_entry for every code, codes sorted case-insensitively."""
    out: Dict[str, dict] = {}
    for code, entry in sort_dataset(dataset).items():
        out[code] = {RATES_KEY: normalize_entry(entry.get(RATES_KEY, []))}
    return out


def records_from_fallback(entries: Iterable["FallbackEntry"]) -> Dict[str, dict]:
    """One record per (classification, effective date) entry from the AI fallback."""
    out: Dict[str, dict] = {}
    for e in entries:
        rec: dict = {DATE_KEY: e.effective_date, "_source": e.source}
        for s in e.steps:
            rec[f"step-{s.step}"] = as_number(s.amount)
        entry_records(out, e.classification).append(rec)
    return out
