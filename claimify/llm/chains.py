"""LangChain chains for structured generation against Ollama."""

import json
import re
from typing import Any

import structlog
from langchain_core.language_models import BaseLLM
from langchain_core.output_parsers import JsonOutputParser, StrOutputParser
from langchain_core.prompts import ChatPromptTemplate

from claimify.config.prompts import JSON_ONLY_INSTRUCTION
from claimify.llm.client import LLMSettings, create_json_llm_client, get_llm_settings
from claimify.llm.generator import GenerationError, SchemaT, StructuredGenerator, retry_policy

logger = structlog.get_logger(__name__)


class LLMChainError(Exception):
    """Error during LLM chain execution."""

    pass


def _extract_json_from_text(text: str) -> str | None:
    """Return the first balanced ``{...}`` object in ``text``.

    Braces inside JSON strings are ignored, so a preamble or thinking text
    ahead of the object does not confuse the match.
    """
    depth = 0
    start_idx = None
    in_string = False
    escape_next = False

    for i, char in enumerate(text):
        if escape_next:
            escape_next = False
            continue
        if char == "\\" and in_string:
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue

        if char == "{":
            if depth == 0:
                start_idx = i
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0 and start_idx is not None:
                return text[start_idx:i + 1]

    return None


def _clean_json_string(text: str) -> str:
    """Strip BOM/zero-width characters and trailing commas."""
    text = text.strip("\ufeff\u200b\u200c\u200d")
    # Trailing commas before } or ] are a common LLM mistake
    return re.sub(r",(\s*[}\]])", r"\1", text)


def _parse_json_response(response: str) -> dict:
    """Parse a JSON object from an LLM response, handling common issues.

    Strategies, in order: strip markdown code fences, direct parse, brace
    matching on the stripped text, brace matching on the original response.

    Raises:
        LLMChainError: If no JSON object can be recovered.
    """
    if not response or not response.strip():
        raise LLMChainError("Empty response from LLM")

    text = response.strip()

    logger.debug(
        "raw_llm_response",
        response_length=len(text),
        preview=text[:500],
    )

    # Strategy 1: Remove markdown code blocks (```json, ```JSON, ``` ...)
    match = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text, re.IGNORECASE)
    if match and match.group(1).strip().startswith("{"):
        text = match.group(1).strip()

    # Strategy 2: Direct parsing attempt
    try:
        parsed = json.loads(_clean_json_string(text))
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError as e:
        logger.debug("direct_parse_failed", error=str(e))

    # Strategy 3: Brace matching, first on the stripped text then on the raw response
    for candidate_source in (text, response):
        extracted = _extract_json_from_text(candidate_source)
        if not extracted:
            continue
        try:
            return json.loads(_clean_json_string(extracted))
        except json.JSONDecodeError as e:
            logger.debug("extracted_parse_failed", error=str(e))

    logger.error("json_parse_error", response_preview=text[:300])
    raise LLMChainError(f"Failed to parse LLM JSON response. Response preview: {text[:150]}")


def _schema_instruction(schema: type[SchemaT]) -> str:
    """JSON-only instruction plus the schema the response must satisfy."""
    json_schema = json.dumps(schema.model_json_schema(), indent=2)
    return (
        f"{JSON_ONLY_INSTRUCTION}\n\n"
        f"The JSON object must conform to this JSON Schema:\n{json_schema}"
    )


class OllamaStructuredGenerator(StructuredGenerator):
    """Prompt an Ollama completion model and validate its JSON answer.

    The primary model is retried once with the fallback model when it returns
    an empty response; the whole call is retried with exponential backoff
    before a :class:`GenerationError` is raised.
    """

    def __init__(
        self,
        settings: LLMSettings | None = None,
        llm: BaseLLM | None = None,
        fallback_llm: BaseLLM | None = None,
    ):
        self.settings = settings or get_llm_settings()
        self.llm = llm or create_json_llm_client(self.settings)
        if fallback_llm is None and self.settings.fallback_model_name:
            fallback_llm = create_json_llm_client(self.settings, use_fallback=True)
        self.fallback_llm = fallback_llm
        self._prompt = ChatPromptTemplate.from_messages([
            ("system", "{system_prompt}"),
            ("human", "{user_prompt}"),
        ])
        self._json_parser = JsonOutputParser()

    def _invoke_with_fallback(self, variables: dict, context_name: str) -> str:
        """Invoke the primary model, then the fallback model on an empty response.

        Raises:
            LLMChainError: If every configured model returned empty.
        """
        response = (self._prompt | self.llm | StrOutputParser()).invoke(variables)
        if response and response.strip():
            logger.debug(f"{context_name}_primary_success", length=len(response))
            return response

        if self.fallback_llm is None:
            raise LLMChainError(f"Primary model ({self.settings.model_name}) returned an empty response")

        logger.warning(
            f"{context_name}_primary_empty_trying_fallback",
            primary_model=self.settings.model_name,
            fallback_model=self.settings.fallback_model_name,
        )
        response = (self._prompt | self.fallback_llm | StrOutputParser()).invoke(variables)
        if response and response.strip():
            logger.info(f"{context_name}_fallback_success", length=len(response))
            return response

        raise LLMChainError(
            f"Both primary ({self.settings.model_name}) and fallback "
            f"({self.settings.fallback_model_name}) returned empty responses"
        )

    def _generate_once(self, system_prompt: str, user_prompt: str, schema: type[SchemaT]) -> SchemaT:
        context_name = schema.__name__.lower()
        variables = {
            "system_prompt": system_prompt + _schema_instruction(schema),
            "user_prompt": user_prompt,
        }
        response = self._invoke_with_fallback(variables, context_name)

        # Try JsonOutputParser first, fallback to manual parsing
        payload: Any
        try:
            payload = self._json_parser.parse(response)
        except Exception as e:
            logger.debug("json_parser_failed", error=str(e))
            payload = _parse_json_response(response)

        if not isinstance(payload, dict):
            payload = _parse_json_response(response)

        return schema.model_validate(payload)

    def generate(self, system_prompt: str, user_prompt: str, schema: type[SchemaT]) -> SchemaT:
        try:
            for attempt in retry_policy(self.settings):
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        logger.debug(
                            "generation_retry",
                            schema=schema.__name__,
                            attempt=attempt.retry_state.attempt_number,
                        )
                    return self._generate_once(system_prompt, user_prompt, schema)
        except Exception as e:
            raise GenerationError(f"{schema.__name__} generation failed: {e}") from e
