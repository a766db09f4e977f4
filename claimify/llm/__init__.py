"""LLM client and structured generation adapters."""

from .client import LLMSettings, create_chat_client, create_json_llm_client, get_llm_settings
from .generator import ChatModelGenerator, GenerationError, StructuredGenerator, create_generator
from .chains import LLMChainError, OllamaStructuredGenerator

__all__ = [
    "LLMSettings",
    "get_llm_settings",
    "create_json_llm_client",
    "create_chat_client",
    "StructuredGenerator",
    "GenerationError",
    "ChatModelGenerator",
    "OllamaStructuredGenerator",
    "LLMChainError",
    "create_generator",
]
