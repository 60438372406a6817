from __future__ import annotations

import re
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator, model_validator

STEP_KEY = re.compile(r"^step-(\d+)$")
RAW_STEP_KEY = re.compile(r"^_raw-step-(\d+)$")

RATES_KEY = "annual-rates-of-pay"
DATE_KEY = "effective-date"

# -----------------------------
# Persisted dataset contract
# -----------------------------


class RatesEntry(BaseModel):
    """
    One effective-date snapshot. Step values live in extra keys ("step-1", "step-2", ...),
    next to optional "_raw-step-N" and "_source" metadata.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    effective_date: Optional[str] = Field(default=None, alias=DATE_KEY)
    source: Optional[str] = Field(default=None, alias="_source")

    @model_validator(mode="after")
    def _steps_contiguous(self) -> "RatesEntry":
        extra = self.model_extra or {}
        steps: List[int] = []
        for k, v in extra.items():
            m = STEP_KEY.match(k)
            if not m:
                continue
            if isinstance(v, bool) or not isinstance(v, (int, float, str)):
                raise ValueError(f"{k} must be a number or string, got {type(v).__name__}")
            steps.append(int(m.group(1)))

        steps.sort()
        if steps != list(range(1, len(steps) + 1)):
            raise ValueError(f"step keys must be contiguous from 1, got {steps}")

        for k in extra:
            m = RAW_STEP_KEY.match(k)
            if m and int(m.group(1)) not in steps:
                raise ValueError(f"{k} has no matching step")
        return self


class ClassificationEntry(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    annual_rates_of_pay: List[RatesEntry] = Field(default_factory=list, alias=RATES_KEY)


class Dataset(RootModel[Dict[str, ClassificationEntry]]):
    @field_validator("root")
    @classmethod
    def _codes_non_empty(cls, v: Dict[str, ClassificationEntry]) -> Dict[str, ClassificationEntry]:
        for code in v:
            if not code or code != code.strip():
                raise ValueError(f"invalid classification code {code!r}")
        return v


# -----------------------------
# JSON Schema export
# -----------------------------
def export_json_schema() -> dict:
    """Export the JSON Schema for the persisted dataset (Pydantic v2)."""
    return Dataset.model_json_schema(by_alias=True)
