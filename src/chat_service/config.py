from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from pydantic import Field, PostgresDsn, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


@dataclass(frozen=True)
class LLMConfig:
    """Completion backend settings handed to the adapter factory."""

    provider: str
    mock_base_url: Optional[str] = None
    ollama_base_url: Optional[str] = None
    ollama_model: Optional[str] = None
    timeout_ms: int = 12000
    max_retries: int = 2
    retry_delay_ms: int = 1000


class Settings(BaseSettings):
    """
    Configuration settings for the Chat Service.

    Loads from a .env file and environment variables.

    Service variables are prefixed with CHAT_SERVICE_ to avoid conflicts
    with other services. Completion backend variables keep their shared
    names (LLM_PROVIDER, OLLAMA_MODEL, ...) so they can be set once for
    the whole stack.
    """

    model_config = SettingsConfigDict(
        env_file=".env.dev",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- GENERAL APP SETTINGS ---
    PROJECT_NAME: str = "Chat Service"
    DEBUG: bool = Field(False, alias="CHAT_SERVICE_DEBUG")
    ENVIRONMENT: Environment = Field(
        Environment.DEVELOPMENT, alias="CHAT_SERVICE_ENVIRONMENT"
    )
    LOGGING_LEVEL: str = Field("INFO", alias="CHAT_SERVICE_LOGGING_LEVEL")
    ROOT_PATH: str = Field("", alias="CHAT_SERVICE_ROOT_PATH")

    # --- DATABASE SETTINGS ---
    DATABASE_URL: str = Field(..., alias="CHAT_SERVICE_DATABASE_URL")
    AUTO_CREATE_TABLES: bool = Field(True, alias="CHAT_SERVICE_AUTO_CREATE_TABLES")

    # --- CORS SETTINGS ---
    CORS_ALLOW_ORIGINS: List[str] = Field(
        ["*"], alias="CHAT_SERVICE_CORS_ALLOW_ORIGINS"
    )

    # --- PAGINATION ---
    DEFAULT_PAGE_SIZE: int = Field(20, alias="CHAT_SERVICE_DEFAULT_PAGE_SIZE")
    MAX_PAGE_SIZE: int = Field(100, alias="CHAT_SERVICE_MAX_PAGE_SIZE")

    # --- CLIENT DISCONNECT HANDLING ---
    CANCEL_ON_DISCONNECT: bool = Field(True, alias="CHAT_SERVICE_CANCEL_ON_DISCONNECT")
    DISCONNECT_POLL_INTERVAL_MS: int = Field(
        250, alias="CHAT_SERVICE_DISCONNECT_POLL_INTERVAL_MS"
    )

    # --- COMPLETION BACKEND ---
    LLM_PROVIDER: str = Field("mock", alias="LLM_PROVIDER")
    MOCK_LLM_BASE_URL: Optional[str] = Field(
        "http://mock-llm:8080", alias="MOCK_LLM_BASE_URL"
    )
    OLLAMA_BASE_URL: Optional[str] = Field(
        "http://ollama:11434", alias="OLLAMA_BASE_URL"
    )
    OLLAMA_MODEL: Optional[str] = Field("llama3", alias="OLLAMA_MODEL")
    LLM_TIMEOUT_MS: int = Field(12000, alias="LLM_TIMEOUT_MS")
    LLM_MAX_RETRIES: int = Field(2, alias="LLM_MAX_RETRIES")
    LLM_RETRY_DELAY_MS: int = Field(1000, alias="LLM_RETRY_DELAY_MS")

    def is_production(self) -> bool:
        return self.ENVIRONMENT == Environment.PRODUCTION

    def is_development(self) -> bool:
        return self.ENVIRONMENT == Environment.DEVELOPMENT

    def is_testing(self) -> bool:
        return self.ENVIRONMENT == Environment.TESTING

    def llm_config(self) -> LLMConfig:
        return LLMConfig(
            provider=self.LLM_PROVIDER,
            mock_base_url=self.MOCK_LLM_BASE_URL,
            ollama_base_url=self.OLLAMA_BASE_URL,
            ollama_model=self.OLLAMA_MODEL,
            timeout_ms=self.LLM_TIMEOUT_MS,
            max_retries=self.LLM_MAX_RETRIES,
            retry_delay_ms=self.LLM_RETRY_DELAY_MS,
        )

    @field_validator("DATABASE_URL", mode="after")
    def validate_db_url(cls, v: PostgresDsn) -> str:
        """Ensures a PostgreSQL URL uses the psycopg driver."""
        v = str(v)
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+psycopg://", 1)
        return v


# Global instance of the settings
settings = Settings()
