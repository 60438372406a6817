"""
Read-only checks over a finished dataset. Nothing here mutates its input;
prune_base_codes returns a pruned copy.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from payrates.extract.schema import DATE_KEY, RATES_KEY, STEP_KEY

HOURLY_MAX = 100
ANNUAL_MAX = 500_000


@dataclass(frozen=True)
class SalaryIssue:
    code: str
    kind: str  # hourly_rate | concatenated | non_numeric_step
    min: Optional[float]
    max: Optional[float]
    steps: int
    effective_date: Optional[str]


def base_code_artifacts(dataset: Dict[str, dict]) -> Dict[str, List[str]]:
    """Hyphen-less codes that also exist with levels, e.g. {"AS": ["AS-01", "AS-02"]}."""
    out: Dict[str, List[str]] = {}
    for code in sorted(c for c in dataset if "-" not in c):
        siblings = sorted(c for c in dataset if c.startswith(code + "-"))
        if siblings:
            out[code] = siblings
    return out


def salary_issues(dataset: Dict[str, dict]) -> List[SalaryIssue]:
    """
    Looks at the latest record of each code. Numeric steps under 100 read as hourly
    rates, over 500 000 as concatenated numbers; string steps are reported separately.
    """
    issues: List[SalaryIssue] = []
    for code, entry in dataset.items():
        records = entry.get(RATES_KEY) or []
        if not records:
            continue
        latest = records[-1]
        values = [v for k, v in latest.items() if STEP_KEY.match(k)]
        if not values:
            continue
        date = latest.get(DATE_KEY)

        numbers = [v for v in values if isinstance(v, (int, float)) and not isinstance(v, bool)]
        if numbers:
            lo, hi = min(numbers), max(numbers)
            if lo < HOURLY_MAX:
                issues.append(SalaryIssue(code, "hourly_rate", lo, hi, len(values), date))
            elif hi > ANNUAL_MAX:
                issues.append(SalaryIssue(code, "concatenated", lo, hi, len(values), date))
        if len(numbers) < len(values):
            issues.append(SalaryIssue(code, "non_numeric_step", None, None, len(values), date))
    return issues


def is_unrepresented(entry: dict) -> bool:
    return any("unrepresented" in str(r.get("_source") or "") for r in entry.get(RATES_KEY, []))


def prune_base_codes(dataset: Dict[str, dict]) -> Dict[str, dict]:
    drop = set(base_code_artifacts(dataset))
    return {code: entry for code, entry in dataset.items() if code not in drop}
