# tests/test_llm_service.py
from unittest.mock import MagicMock, patch

import pytest

from services.knowledge.errors import GeneratorUnavailable
from services.knowledge.prompts import SYSTEM_PROMPT
from services.llm_factory import GEMINI_BASE_URL, LLMFactory, LLMProvider
from services.llm_service import generate_topic_payload


def _response(content):
    response = MagicMock()
    if content is None:
        response.choices = []
    else:
        response.choices = [MagicMock()]
        response.choices[0].message.content = content
    return response


@pytest.fixture
def mock_client():
    with patch("services.llm_service.LLMFactory.get_client") as get_client:
        yield get_client.return_value


def test_topic_payload_uses_json_mode(mock_client, monkeypatch):
    monkeypatch.setenv("LLM_PROVIDER", "gemini")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-test")
    mock_client.chat.completions.create.return_value = _response('{"topic": "Quasar"}')

    raw = generate_topic_payload("What is a quasar?", "ko")

    assert raw == '{"topic": "Quasar"}'
    kwargs = mock_client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gemini-test"
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert "What is a quasar?" in kwargs["messages"][1]["content"]
    assert "Korean" in kwargs["messages"][1]["content"]


def test_provider_errors_are_generator_unavailable(mock_client):
    mock_client.chat.completions.create.side_effect = TimeoutError("read timed out")
    with pytest.raises(GeneratorUnavailable):
        generate_topic_payload("quasar", "en")


def test_empty_response_is_generator_unavailable(mock_client):
    mock_client.chat.completions.create.return_value = _response(None)
    with pytest.raises(GeneratorUnavailable):
        generate_topic_payload("quasar", "en")

    mock_client.chat.completions.create.return_value = _response("")
    with pytest.raises(GeneratorUnavailable):
        generate_topic_payload("quasar", "en")


def test_factory_builds_gemini_client(monkeypatch):
    monkeypatch.setenv("GOOGLE_GENERATIVE_AI_API_KEY", "g-key")
    LLMFactory._instances.clear()

    with patch("services.llm_factory.OpenAI") as mock_openai:
        first = LLMFactory.get_client(LLMProvider.GEMINI)
        second = LLMFactory.get_client(LLMProvider.GEMINI)

    assert first is second
    mock_openai.assert_called_once_with(api_key="g-key", base_url=GEMINI_BASE_URL, timeout=45.0, max_retries=2)


def test_factory_requires_credentials(monkeypatch):
    monkeypatch.delenv("GOOGLE_GENERATIVE_AI_API_KEY", raising=False)
    with pytest.raises(ValueError):
        LLMFactory.get_client(LLMProvider.GEMINI)
    with pytest.raises(ValueError):
        LLMFactory.get_client("carrier-pigeon")
