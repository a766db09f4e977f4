"""Structured generation capability used by every pipeline stage.

Stages depend only on :class:`StructuredGenerator`; provider adapters live
next to it (``ChatModelGenerator`` here, ``OllamaStructuredGenerator`` in
:mod:`claimify.llm.chains`).
"""

from abc import ABC, abstractmethod
from typing import TypeVar

import structlog
from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel
from tenacity import Retrying, stop_after_attempt, wait_exponential

from claimify.llm.client import LLMSettings, create_chat_client, get_llm_settings

logger = structlog.get_logger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class GenerationError(Exception):
    """A single generation call could not produce a schema-valid result."""

    pass


class StructuredGenerator(ABC):
    """Generate an instance of ``schema`` from a system and a user prompt."""

    @abstractmethod
    def generate(self, system_prompt: str, user_prompt: str, schema: type[SchemaT]) -> SchemaT:
        """Run one generation call.

        Raises:
            GenerationError: If the provider fails or the response does not
                validate against ``schema``.
        """


def retry_policy(settings: LLMSettings) -> Retrying:
    return Retrying(
        stop=stop_after_attempt(settings.max_attempts),
        wait=wait_exponential(multiplier=1, min=settings.retry_min_wait, max=settings.retry_max_wait),
        reraise=True,
    )


class ChatModelGenerator(StructuredGenerator):
    """Adapter over any LangChain chat model that supports structured output."""

    def __init__(self, chat_model: BaseChatModel, settings: LLMSettings | None = None):
        self.chat_model = chat_model
        self.settings = settings or get_llm_settings()
        self._prompt = ChatPromptTemplate.from_messages([
            ("system", "{system_prompt}"),
            ("human", "{user_prompt}"),
        ])

    def generate(self, system_prompt: str, user_prompt: str, schema: type[SchemaT]) -> SchemaT:
        chain = self._prompt | self.chat_model.with_structured_output(schema)
        variables = {"system_prompt": system_prompt, "user_prompt": user_prompt}

        try:
            for attempt in retry_policy(self.settings):
                with attempt:
                    result = chain.invoke(variables)
                    if result is None:
                        raise GenerationError(f"Chat model returned no {schema.__name__}")
                    # Re-validate: some providers hand back dicts or partial objects
                    if isinstance(result, BaseModel):
                        result = result.model_dump()
                    return schema.model_validate(result)
        except Exception as e:
            logger.debug("chat_generation_failed", schema=schema.__name__, error=str(e))
            raise GenerationError(f"{schema.__name__} generation failed: {e}") from e


def create_generator(settings: LLMSettings | None = None) -> StructuredGenerator:
    """Create the generator selected by ``LLM_PROVIDER``.

    Args:
        settings: Optional custom settings. Uses defaults if not provided.

    Returns:
        A ready-to-use StructuredGenerator.
    """
    settings = settings or get_llm_settings()

    if settings.provider == "ollama-chat":
        logger.info("generator_created", provider=settings.provider, model=settings.model_name)
        return ChatModelGenerator(create_chat_client(settings), settings=settings)

    # Imported here: chains depends on this module for the base class
    from claimify.llm.chains import OllamaStructuredGenerator

    logger.info(
        "generator_created",
        provider=settings.provider,
        model=settings.model_name,
        fallback_model=settings.fallback_model_name,
    )
    return OllamaStructuredGenerator(settings=settings)
