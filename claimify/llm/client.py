"""Ollama LLM client configuration."""

from functools import lru_cache
from typing import Literal

from langchain_ollama import ChatOllama, OllamaLLM
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMSettings(BaseSettings):
    """LLM configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=".env",
        extra="ignore",
    )

    provider: Literal["ollama", "ollama-chat"] = "ollama"
    ollama_base_url: str = "http://localhost:11434"
    model_name: str = "gpt-oss:20b"
    fallback_model_name: str | None = None  # Used when primary returns empty
    temperature: float = 0.0
    request_timeout: int = 120
    num_ctx: int = 8192
    num_predict: int = 4096  # Max tokens to generate

    # Retry policy for one structured generation call
    max_attempts: int = 3
    retry_min_wait: float = 2.0
    retry_max_wait: float = 30.0


@lru_cache
def get_llm_settings() -> LLMSettings:
    """Get cached LLM settings."""
    return LLMSettings()


def create_json_llm_client(settings: LLMSettings | None = None, use_fallback: bool = False) -> OllamaLLM:
    """Create LLM client configured for JSON output.

    Args:
        settings: Optional custom settings.
        use_fallback: If True, use the fallback model instead of primary.

    Returns:
        OllamaLLM instance configured for JSON responses.

    Raises:
        ValueError: If the fallback client is requested but no fallback model is configured.
    """
    settings = settings or get_llm_settings()
    if use_fallback and not settings.fallback_model_name:
        raise ValueError("No fallback model configured (LLM_FALLBACK_MODEL_NAME)")
    model = settings.fallback_model_name if use_fallback else settings.model_name

    return OllamaLLM(
        model=model,
        base_url=settings.ollama_base_url,
        temperature=settings.temperature,
        client_kwargs={"timeout": settings.request_timeout},
        num_ctx=settings.num_ctx,
        num_predict=settings.num_predict,
        # format="json" is not set: some models ignore it and truncate.
        # JSON extraction is handled in chains._parse_json_response instead.
    )


def create_chat_client(settings: LLMSettings | None = None) -> ChatOllama:
    """Create a chat model client for tool/structured-output calling.

    Args:
        settings: Optional custom settings. Uses defaults if not provided.

    Returns:
        Configured ChatOllama instance.
    """
    settings = settings or get_llm_settings()

    return ChatOllama(
        model=settings.model_name,
        base_url=settings.ollama_base_url,
        temperature=settings.temperature,
        num_ctx=settings.num_ctx,
        num_predict=settings.num_predict,
        client_kwargs={"timeout": settings.request_timeout},
    )
