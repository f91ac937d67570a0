from enum import Enum
from typing import Callable, Dict, Optional

import httpx

from ..config import LLMConfig
from ..errors import ConfigurationError
from ..logging_config import logger
from .adapters import MockLLMAdapter, OllamaAdapter
from .types import CompletionAdapter, RetryPolicy


class LLMProvider(str, Enum):
    MOCK = "mock"
    OLLAMA = "ollama"


def _build_policy(config: LLMConfig) -> RetryPolicy:
    if config.timeout_ms <= 0:
        raise ConfigurationError("LLM_TIMEOUT_MS must be positive")
    if config.max_retries < 0:
        raise ConfigurationError("LLM_MAX_RETRIES must not be negative")
    if config.retry_delay_ms < 0:
        raise ConfigurationError("LLM_RETRY_DELAY_MS must not be negative")
    return RetryPolicy(
        timeout_ms=config.timeout_ms,
        max_retries=config.max_retries,
        retry_delay_ms=config.retry_delay_ms,
    )


def _build_mock(
    config: LLMConfig, transport: Optional[httpx.AsyncBaseTransport]
) -> CompletionAdapter:
    if not config.mock_base_url:
        raise ConfigurationError("MOCK_LLM_BASE_URL is required for mock provider")
    return MockLLMAdapter(
        base_url=config.mock_base_url,
        policy=_build_policy(config),
        transport=transport,
    )


def _build_ollama(
    config: LLMConfig, transport: Optional[httpx.AsyncBaseTransport]
) -> CompletionAdapter:
    if not config.ollama_base_url or not config.ollama_model:
        raise ConfigurationError(
            "OLLAMA_BASE_URL and OLLAMA_MODEL are required for ollama provider"
        )
    return OllamaAdapter(
        base_url=config.ollama_base_url,
        model=config.ollama_model,
        policy=_build_policy(config),
        transport=transport,
    )


_BUILDERS: Dict[
    LLMProvider,
    Callable[[LLMConfig, Optional[httpx.AsyncBaseTransport]], CompletionAdapter],
] = {
    LLMProvider.MOCK: _build_mock,
    LLMProvider.OLLAMA: _build_ollama,
}


def create_llm_adapter(
    config: LLMConfig, transport: Optional[httpx.AsyncBaseTransport] = None
) -> CompletionAdapter:
    """
    Factory function to get the completion adapter for the configured provider.

    Pure construction: no network I/O happens here, but every required
    setting is checked so a misconfigured service fails at startup.
    """
    try:
        provider = LLMProvider((config.provider or "").strip().lower())
    except ValueError:
        raise ConfigurationError(f"Unknown LLM provider: {config.provider}") from None

    logger.info(f"Creating LLM adapter for provider: {provider.value}")
    return _BUILDERS[provider](config, transport)
