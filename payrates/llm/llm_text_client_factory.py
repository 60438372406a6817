from typing import Any, Optional

from payrates.llm.llm_text_client import LLMTextClient
from payrates.llm.mock_text_client import MockTextClient
from payrates.llm.ollama_text_client import OllamaTextClient
from payrates.llm.openai_text_client import OpenAITextClient

PROVIDERS = ("mock", "ollama", "openai")


def create_llm_text_client(provider: str, *, model: Optional[str] = None, **kwargs: Any) -> LLMTextClient:
    if model:
        kwargs["model"] = model
    if provider == "ollama":
        return OllamaTextClient(**kwargs)
    elif provider == "openai":
        return OpenAITextClient(**kwargs)
    elif provider == "mock":
        return MockTextClient()
    raise ValueError(f"Unknown LLM provider: {provider}. Use one of {', '.join(PROVIDERS)}.")
