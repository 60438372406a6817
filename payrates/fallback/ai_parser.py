"""
AI fallback for salary tables the DOM heuristics read poorly.

Flow (hybrid_parse):
  DOM parse -> calculate_confidence -> choose_strategy
    UseDom       -> keep the DOM records
    UseFallback  -> largest <table> -> AITableParser.parse -> validate_salary_data

Every failure inside this layer (transport, JSON, validation) is logged and turned
into a ParseResult with success=False; nothing here raises on model output.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from payrates.dataset.merge import records_from_fallback
from payrates.extract.schema import DATE_KEY, RATES_KEY, STEP_KEY
from payrates.llm.llm_text_client import LLMTextClient

logger = logging.getLogger(__name__)

MIN_SALARY = 1
MAX_SALARY = 500_000
MAX_ACCEPTED_ERRORS = 5

_RE_VALID_CODE = re.compile(r"^[A-Z]{2,4}(-[A-Z0-9]+)?(-\d+)?$")
_RE_TABLE = re.compile(r"<table[^>]*>[\s\S]*?</table>", re.IGNORECASE)
_RE_FENCE = re.compile(r"```(?:json)?\n?")
_RE_PLAIN_NUMBER = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?\s*$")

DomParser = Callable[[str, str], Dict[str, dict]]


# ---------- models ----------


class FallbackStep(BaseModel):
    step: int = Field(ge=1)
    amount: float


class FallbackEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    classification: str
    steps: List[FallbackStep] = Field(default_factory=list)
    effective_date: Optional[str] = Field(default=None, alias="effectiveDate")
    source: str = ""


class _AIResponse(BaseModel):
    classifications: List[FallbackEntry]


class ParseResult(BaseModel):
    success: bool
    data: List[FallbackEntry] = Field(default_factory=list)
    confidence: float = 0.0
    method: Literal["dom", "ai-text"]
    cost: float = 0.0
    # internal-format records the caller should merge for this page
    records: Dict[str, dict] = Field(default_factory=dict)


# ---------- AI table parser ----------

PROMPT_TEMPLATE = """\
Extract salary data from this HTML table. Return a JSON object with a "classifications" array.

Format:
{{
  "classifications": [
    {{
      "classification": "AS-01",
      "steps": [
        {{"step": 1, "amount": 50000}},
        {{"step": 2, "amount": 52000}}
      ],
      "effectiveDate": "2024-01-01",
      "source": "{source_url}"
    }}
  ]
}}

Rules:
1. Extract ALL classification codes from the table caption or headers
2. Convert salaries to numbers (remove $, commas, spaces)
3. Parse dates to YYYY-MM-DD format
4. If the table shows an "X to Y" range, create step 1 (X) and step 2 (Y)
5. Skip header rows, footnotes and non-salary data
6. Preserve step numbers as shown in the table
7. Each classification gets its own entry in the classifications array

HTML Table:
{table_html}
"""


def _strip_fences(text: str) -> str:
    return _RE_FENCE.sub("", text).strip()


def _entries_payload(parsed: Any) -> Any:
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        return parsed.get("classifications") or parsed.get("data") or []
    raise ValueError(f"unexpected JSON top-level type: {type(parsed).__name__}")


@dataclass
class AITableParser:
    client: LLMTextClient
    cost_per_call: float = 0.02
    max_html_chars: int = 8000

    def build_prompt(self, table_html: str, source_url: str) -> str:
        return PROMPT_TEMPLATE.format(source_url=source_url, table_html=table_html[: self.max_html_chars])

    def parse(self, table_html: str, source_url: str) -> ParseResult:
        prompt = self.build_prompt(table_html, source_url)
        try:
            raw = self.client.generate_raw(
                prompt,
                json_schema=_AIResponse.model_json_schema(by_alias=True),
                options={"temperature": 0},
            )
        except Exception as e:
            logger.warning("AI table parse failed for %s: %s", source_url, e)
            return ParseResult(success=False, method="ai-text", cost=0.0)

        content = _strip_fences(raw or "")
        try:
            payload = _entries_payload(json.loads(content))
            entries = [FallbackEntry.model_validate(e) for e in payload]
        except (ValueError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            logger.warning("could not decode AI response for %s: %s", source_url, e)
            logger.debug("AI response was: %s", content)
            return ParseResult(success=False, method="ai-text", cost=self.cost_per_call)

        for e in entries:
            if not e.source:
                e.source = source_url
        return ParseResult(
            success=True,
            data=entries,
            confidence=0.95,
            method="ai-text",
            cost=self.cost_per_call,
            records=records_from_fallback(entries),
        )


# ---------- validation & confidence ----------


def validate_salary_data(entries: List[FallbackEntry]) -> Tuple[bool, List[str]]:
    if not entries:
        return False, ["No data extracted"]

    errors: List[str] = []
    for i, e in enumerate(entries):
        if not e.classification:
            errors.append(f"Entry {i}: Missing classification")
        if not e.steps:
            errors.append(f"Entry {i} ({e.classification}): No salary steps")
        for j, s in enumerate(e.steps):
            if not MIN_SALARY <= s.amount <= MAX_SALARY:
                errors.append(f"{e.classification} step {j}: Suspicious amount ${s.amount:g}")
        for j in range(1, len(e.steps)):
            if e.steps[j].amount < e.steps[j - 1].amount:
                errors.append(f"{e.classification}: Step {j + 1} is lower than step {j}")
    return not errors, errors


def _numeric(v: Any) -> float:
    if isinstance(v, bool):
        return math.nan
    if isinstance(v, (int, float)):
        return float(v)
    # only plain numeric strings; "50,000" or "see note 3" are not amounts
    if isinstance(v, str) and _RE_PLAIN_NUMBER.match(v):
        return float(v)
    return math.nan


def calculate_confidence(dataset: Dict[str, dict]) -> float:
    """
    0 for an empty result. Otherwise 0.5, plus 0.2 x share of well-formed codes,
    plus 0.3 x share of step values between 1 and 500 000; capped at 1.
    """
    if not dataset:
        return 0.0
    codes = list(dataset)
    score = 0.5 + 0.2 * sum(1 for c in codes if _RE_VALID_CODE.match(c)) / len(codes)

    total = reasonable = 0
    for entry in dataset.values():
        for rec in entry.get(RATES_KEY, []):
            for k, v in rec.items():
                if not STEP_KEY.match(k):
                    continue
                total += 1
                if MIN_SALARY <= _numeric(v) <= MAX_SALARY:
                    reasonable += 1
    if total:
        score += 0.3 * reasonable / total
    return min(score, 1.0)


# ---------- strategy ----------


@dataclass(frozen=True)
class UseDom:
    result: Dict[str, dict]
    confidence: float


@dataclass(frozen=True)
class UseFallback:
    reason: str
    confidence: float


Strategy = Union[UseDom, UseFallback]


def choose_strategy(dom_result: Dict[str, dict], threshold: float = 0.85) -> Strategy:
    confidence = calculate_confidence(dom_result)
    if confidence > threshold:
        return UseDom(result=dom_result, confidence=confidence)
    if not dom_result:
        return UseFallback(reason="DOM parser found no classifications", confidence=confidence)
    return UseFallback(reason=f"DOM confidence {confidence:.0%} not above {threshold:.0%}", confidence=confidence)


def largest_table_html(html: str) -> str:
    """The longest <table>...</table> fragment, or the first 10 000 characters when there is none."""
    tables = _RE_TABLE.findall(html)
    if not tables:
        return html[:10000]
    return max(tables, key=len)


def entries_from_records(dataset: Dict[str, dict]) -> List[FallbackEntry]:
    """Internal records -> FallbackEntry list; non-numeric steps are left out."""
    out: List[FallbackEntry] = []
    for code, entry in dataset.items():
        for rec in entry.get(RATES_KEY, []):
            steps = []
            for k, v in rec.items():
                m = STEP_KEY.match(k)
                if not m:
                    continue
                amount = _numeric(v)
                if not math.isnan(amount):
                    steps.append(FallbackStep(step=int(m.group(1)), amount=amount))
            if not steps:
                continue
            steps.sort(key=lambda s: s.step)
            out.append(
                FallbackEntry(
                    classification=code,
                    steps=steps,
                    effective_date=rec.get(DATE_KEY) or "",
                    source=rec.get("_source") or "",
                )
            )
    return out


def hybrid_parse(
    html: str,
    url: str,
    dom_parser: DomParser,
    ai_parser: AITableParser,
    *,
    threshold: float = 0.85,
) -> ParseResult:
    """
    DOM first; the AI parser only runs when the DOM confidence is not above
    `threshold`. An AI result failing validation is still accepted (confidence 0.7)
    when it has fewer than 5 errors. When neither path succeeds the DOM records are
    returned with success=False so the caller can still merge them.
    """
    dom_result = dom_parser(html, url)
    strategy = choose_strategy(dom_result, threshold)

    if isinstance(strategy, UseDom):
        logger.debug("DOM parse of %s accepted (confidence %.0f%%)", url, strategy.confidence * 100)
        return ParseResult(
            success=True,
            data=entries_from_records(dom_result),
            confidence=strategy.confidence,
            method="dom",
            cost=0.0,
            records=dom_result,
        )

    logger.info("%s: %s, trying AI parser", url, strategy.reason)
    ai_result = ai_parser.parse(largest_table_html(html), url)

    if ai_result.success:
        ok, errors = validate_salary_data(ai_result.data)
        if ok:
            return ai_result
        logger.warning("AI parse of %s has %d validation errors: %s", url, len(errors), "; ".join(errors[:5]))
        accepted = len(errors) < MAX_ACCEPTED_ERRORS
        return ai_result.model_copy(
            update={
                "confidence": 0.7,
                "success": accepted,
                "records": ai_result.records if accepted else dom_result,
            }
        )

    logger.error("both DOM and AI parsing failed for %s", url)
    return ParseResult(success=False, confidence=0.0, method="dom", cost=ai_result.cost, records=dom_result)


# ---------- usage tracking ----------


@dataclass
class UsageTracker:
    total_calls: int = 0
    successful_calls: int = 0
    total_cost: float = 0.0

    def track_call(self, result: ParseResult) -> None:
        self.total_calls += 1
        self.total_cost += result.cost
        if result.success:
            self.successful_calls += 1

    def stats(self) -> Dict[str, float]:
        n = self.total_calls
        return {
            "total_calls": n,
            "successful_calls": self.successful_calls,
            "total_cost": self.total_cost,
            "average_cost": self.total_cost / n if n else 0.0,
            "success_rate": self.successful_calls / n if n else 0.0,
        }

    def reset(self) -> None:
        self.total_calls = 0
        self.successful_calls = 0
        self.total_cost = 0.0
