from __future__ import annotations

import hashlib
import json
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from payrates.llm.llm_text_client import LLMTextClient

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a data extraction expert. Return only valid JSON with no additional text or markdown."


def _stable_json(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, sort_keys=True, separators=(",", ":"))


def openai_strict_json_schema(schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Structured outputs want every object closed (additionalProperties=false) with
    all of its properties required. Returns a transformed deep copy.
    """
    schema = json.loads(json.dumps(schema))

    def _walk(node: Any) -> Any:
        if isinstance(node, dict):
            for k, v in list(node.items()):
                node[k] = _walk(v)
            if node.get("type") == "object" and isinstance(node.get("properties"), dict):
                node["additionalProperties"] = False
                node["required"] = list(node["properties"].keys())
            return node
        if isinstance(node, list):
            return [_walk(x) for x in node]
        return node

    return _walk(schema)


@dataclass
class OpenAITextClient(LLMTextClient):
    """
    Chat Completions client for the fallback parser. The `openai` package is an
    optional extra and only imported on first use.
    """

    model: str = "gpt-4o-mini"
    temperature: float = 0.0
    max_tokens: int = 4000
    timeout_s: float = 60.0
    max_retries: int = 2
    retry_backoff_s: float = 1.5
    enable_cache: bool = True
    cache_dir: Path = field(default_factory=lambda: Path(".cache") / "payrates" / "openai")

    def _client(self):
        try:
            from openai import OpenAI
        except ImportError as e:  # pragma: no cover
            raise RuntimeError("OpenAI SDK not installed. Run: pip install 'payrates[openai]'") from e

        key = os.getenv("OPENAI_API_KEY")
        if not key:
            raise RuntimeError("Missing OpenAI API key. Set environment variable OPENAI_API_KEY")
        return OpenAI(api_key=key, timeout=self.timeout_s)

    def _cache_path(self, payload: Dict[str, Any]) -> Path:
        h = hashlib.sha256(_stable_json(payload).encode("utf-8")).hexdigest()
        return self.cache_dir / self.model / f"{h}.txt"

    def generate_raw(
        self,
        prompt: str,
        *,
        json_schema: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> str:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if json_schema is not None:
            payload["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": "salary_tables", "strict": True, "schema": openai_strict_json_schema(json_schema)},
            }
        else:
            payload["response_format"] = {"type": "json_object"}
        if options:
            payload.update(options)

        path = self._cache_path(payload) if self.enable_cache else None
        if path is not None and path.exists():
            return path.read_text(encoding="utf-8")

        client = self._client()
        last_err: Optional[Exception] = None
        for attempt in range(self.max_retries + 1):
            try:
                resp = client.chat.completions.create(**payload)
                text = (resp.choices[0].message.content or "").strip()
                if path is not None:
                    path.parent.mkdir(parents=True, exist_ok=True)
                    path.write_text(text, encoding="utf-8")
                return text
            except Exception as e:  # pragma: no cover (network)
                last_err = e
                if attempt >= self.max_retries:
                    break
                logger.warning("openai request failed (%s), retry %d", e, attempt + 1)
                time.sleep(self.retry_backoff_s * (attempt + 1))

        raise RuntimeError(f"OpenAI request failed after retries: {last_err}") from last_err
