from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from payrates.llm.llm_text_client import LLMTextClient


@dataclass
class MockTextClient(LLMTextClient):
    """Offline client: always answers with `response` and remembers the prompts it saw."""

    response: str = '{"classifications": []}'
    prompts: List[str] = field(default_factory=list)

    def generate_raw(
        self,
        prompt: str,
        *,
        json_schema: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> str:
        self.prompts.append(prompt)
        return self.response
