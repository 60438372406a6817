import pytest
import requests

from payrates.llm import ollama_text_client
from payrates.llm.llm_text_client_factory import create_llm_text_client
from payrates.llm.mock_text_client import MockTextClient
from payrates.llm.ollama_text_client import OllamaTextClient
from payrates.llm.openai_text_client import OpenAITextClient, openai_strict_json_schema


class _Resp:
    def __init__(self, payload):
        self._payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        return self._payload


def test_factory_providers(tmp_path):
    assert isinstance(create_llm_text_client("mock"), MockTextClient)
    ollama = create_llm_text_client("ollama", model="qwen2.5", cache_dir=tmp_path)
    assert isinstance(ollama, OllamaTextClient)
    assert ollama.model == "qwen2.5"
    assert isinstance(create_llm_text_client("openai"), OpenAITextClient)
    with pytest.raises(ValueError, match="Unknown LLM provider"):
        create_llm_text_client("bard")


def test_mock_client_records_prompts():
    c = MockTextClient(response='{"classifications": [1]}')
    assert c.generate_raw("a") == '{"classifications": [1]}'
    assert c.generate_raw("b", options={"temperature": 0}) == '{"classifications": [1]}'
    assert c.prompts == ["a", "b"]


def test_strict_schema_closes_objects_without_mutating_input():
    schema = {
        "type": "object",
        "properties": {
            "classifications": {
                "type": "array",
                "items": {"type": "object", "properties": {"classification": {"type": "string"}, "source": {"type": "string"}}},
            }
        },
    }
    strict = openai_strict_json_schema(schema)
    item = strict["properties"]["classifications"]["items"]
    assert strict["additionalProperties"] is False
    assert item["required"] == ["classification", "source"]
    assert "additionalProperties" not in schema


def test_ollama_sends_schema_and_caches(tmp_path, monkeypatch):
    calls = []

    def fake_post(url, json, timeout):
        calls.append((url, json))
        return _Resp({"response": '{"classifications": []}'})

    monkeypatch.setattr(ollama_text_client.requests, "post", fake_post)
    client = OllamaTextClient(cache_dir=tmp_path)

    schema = {"type": "object"}
    out1 = client.generate_raw("prompt", json_schema=schema, options={"temperature": 0})
    out2 = client.generate_raw("prompt", json_schema=schema, options={"temperature": 0})

    assert out1 == out2 == '{"classifications": []}'
    assert len(calls) == 1
    url, payload = calls[0]
    assert url.endswith("/api/generate")
    assert payload["format"] == schema
    assert payload["options"]["temperature"] == 0
    assert payload["stream"] is False


def test_ollama_retries_then_raises(tmp_path, monkeypatch):
    attempts = []

    def failing_post(url, json, timeout):
        attempts.append(1)
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(ollama_text_client.requests, "post", failing_post)
    monkeypatch.setattr(ollama_text_client.time, "sleep", lambda s: None)
    client = OllamaTextClient(cache_dir=tmp_path, max_retries=2)

    with pytest.raises(requests.ConnectionError):
        client.generate_raw("prompt")
    assert len(attempts) == 3
