import pytest

from chat_service.config import LLMConfig
from chat_service.errors import ConfigurationError
from chat_service.llm import (
    CompletionAdapter,
    MockLLMAdapter,
    OllamaAdapter,
    create_llm_adapter,
)


def _config(**overrides) -> LLMConfig:
    values = dict(
        provider="mock",
        mock_base_url="http://mock-llm:8080",
        ollama_base_url="http://ollama:11434",
        ollama_model="llama3",
        timeout_ms=12000,
        max_retries=2,
        retry_delay_ms=1000,
    )
    values.update(overrides)
    return LLMConfig(**values)


def test_create_mock_adapter():
    adapter = create_llm_adapter(_config())
    assert isinstance(adapter, MockLLMAdapter)
    assert isinstance(adapter, CompletionAdapter)
    assert adapter.base_url == "http://mock-llm:8080"
    assert adapter.policy.total_attempts == 3


def test_create_ollama_adapter_ignores_case():
    adapter = create_llm_adapter(_config(provider=" Ollama "))
    assert isinstance(adapter, OllamaAdapter)
    assert adapter.model == "llama3"


def test_policy_is_taken_from_config():
    adapter = create_llm_adapter(
        _config(timeout_ms=300, max_retries=0, retry_delay_ms=5)
    )
    assert adapter.policy.timeout_seconds == 0.3
    assert adapter.policy.total_attempts == 1
    assert adapter.policy.delay_ms(2) == 20


def test_unknown_provider_is_rejected():
    with pytest.raises(ConfigurationError, match="Unknown LLM provider: openai"):
        create_llm_adapter(_config(provider="openai"))


@pytest.mark.parametrize(
    "overrides",
    [
        {"mock_base_url": None},
        {"provider": "ollama", "ollama_model": ""},
        {"provider": "ollama", "ollama_base_url": None},
        {"timeout_ms": 0},
        {"max_retries": -1},
        {"retry_delay_ms": -10},
    ],
)
def test_incomplete_config_is_rejected(overrides):
    with pytest.raises(ConfigurationError):
        create_llm_adapter(_config(**overrides))
