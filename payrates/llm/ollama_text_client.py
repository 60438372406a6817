from __future__ import annotations

import hashlib
import json
import logging
import random
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from payrates.llm.llm_text_client import LLMTextClient

logger = logging.getLogger(__name__)


def _sha1(s: str) -> str:
    return hashlib.sha1(s.encode("utf-8")).hexdigest()


@dataclass
class OllamaTextClient(LLMTextClient):
    """Local Ollama /api/generate client with on-disk cache and retry/backoff."""

    model: str = "llama3.1"
    host: str = "http://127.0.0.1:11434"
    temperature: float = 0.0
    num_ctx: int = 16384
    # salary tables can list dozens of steps
    num_predict: int = 4000
    timeout_s: float = 120.0
    max_retries: int = 2
    backoff_base_s: float = 1.5
    backoff_jitter_s: float = 0.4
    enable_cache: bool = True
    cache_dir: Path = field(default_factory=lambda: Path(".cache") / "payrates" / "ollama")

    def __post_init__(self):
        if self.enable_cache:
            self.cache_dir.mkdir(parents=True, exist_ok=True)

    def _cache_path(self, prompt: str, fmt: Optional[Dict[str, Any]], opts: Dict[str, Any]) -> Path:
        key_src = json.dumps(
            {"model": self.model, "prompt": prompt, "format": fmt, "options": opts},
            ensure_ascii=False,
            sort_keys=True,
        )
        return self.cache_dir / f"{_sha1(key_src)}.txt"

    def generate_raw(
        self,
        prompt: str,
        *,
        json_schema: Optional[Dict[str, Any]] = None,  # sent as Ollama "format"
        options: Optional[Dict[str, Any]] = None,  # merged into "options"
    ) -> str:
        """
        Return the "response" string of /api/generate. HTTP errors are retried with
        exponential backoff, then re-raised.
        """
        opts: Dict[str, Any] = {
            "temperature": self.temperature,
            "num_ctx": self.num_ctx,
            "num_predict": self.num_predict,
        }
        if options:
            opts.update(options)

        cache_path = self._cache_path(prompt, json_schema, opts) if self.enable_cache else None
        if cache_path is not None and cache_path.exists():
            logger.debug("ollama cache hit %s", cache_path.name)
            return cache_path.read_text(encoding="utf-8")

        payload: Dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": opts,
        }
        if json_schema is not None:
            payload["format"] = json_schema

        for attempt in range(self.max_retries + 1):
            try:
                r = requests.post(f"{self.host}/api/generate", json=payload, timeout=self.timeout_s)
                r.raise_for_status()
                resp = r.json().get("response", "")
                if cache_path is not None:
                    cache_path.write_text(resp, encoding="utf-8")
                return resp
            except requests.RequestException as e:
                if attempt >= self.max_retries:
                    raise
                sleep_s = min(8.0, self.backoff_base_s**attempt + random.uniform(0, self.backoff_jitter_s))
                logger.warning("ollama request failed (%s), retry %d in %.1fs", e, attempt + 1, sleep_s)
                time.sleep(sleep_s)

        raise RuntimeError("unreachable: retry loop exited without result")
