from typing import Any, Dict, Optional

# ---------- LLM interface ----------


class LLMTextClient:
    """
    Interface for the table-parsing fallback: implement .generate_raw(prompt, ...) -> str.

    Implementations return the model's raw text and raise on transport errors;
    decoding the JSON is the caller's job.
    """

    def generate_raw(
        self,
        prompt: str,
        *,
        json_schema: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> str:
        raise NotImplementedError
