"""Completion providers: OpenAI-compatible HTTP API and Groq SDK."""
import time
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import httpx
from groq import Groq
from groq import APIError, APIResponseValidationError

from config import (
    OPENAI_API_KEY,
    OPENAI_BASE_URL,
    COMPLETION_MODEL,
    COMPLETION_MAX_TOKENS,
    COMPLETION_TEMPERATURE,
    GROQ_API_KEY,
    GROQ_MODEL,
    HTTP_TIMEOUT,
)
from services.errors import ConfigurationError, CompletionParseError, CompletionTransportError

logger = logging.getLogger(__name__)

Message = Dict[str, str]


class CompletionProvider(ABC):
    """Generates one assistant message from an ordered conversation."""

    model: str

    @abstractmethod
    def complete(self, messages: Sequence[Message]) -> str:
        """
        Generate a completion for the given conversation.

        Args:
            messages: Ordered role/content pairs, oldest first

        Returns:
            Generated text, or "" when the provider returned no content

        Raises:
            CompletionTransportError: If the provider could not be reached
            CompletionParseError: If the response body is not in the expected shape
        """


def extract_completion_text(body: Dict[str, Any]) -> str:
    """Read choices[0].message.content, returning "" when any part is missing."""
    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        content = None

    if not isinstance(content, str):
        logger.warning("Completion response has no message content; returning empty completion")
        return ""
    return content


class OpenAICompletionClient(CompletionProvider):
    """Client for the OpenAI chat completions endpoint over plain HTTP."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        http_client: Optional[httpx.Client] = None
    ):
        """
        Initialize the client.

        Args:
            api_key: OpenAI API key (defaults to OPENAI_API_KEY from environment)
            model: Chat model name
            base_url: API root, for OpenAI-compatible gateways
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            http_client: Shared httpx client

        Raises:
            ConfigurationError: If no API key is available
        """
        self.api_key = api_key or OPENAI_API_KEY
        if not self.api_key:
            raise ConfigurationError("OPENAI_API_KEY must be provided or set in environment")

        self.model = model or COMPLETION_MODEL
        self.base_url = (base_url or OPENAI_BASE_URL).rstrip("/")
        self.max_tokens = max_tokens if max_tokens is not None else COMPLETION_MAX_TOKENS
        self.temperature = temperature if temperature is not None else COMPLETION_TEMPERATURE
        self.http_client = http_client or httpx.Client(timeout=HTTP_TIMEOUT)
        logger.info(f"OpenAICompletionClient initialized (model={self.model})")

    def complete(self, messages: Sequence[Message]) -> str:
        start_time = time.time()
        payload = {
            "model": self.model,
            "messages": list(messages),
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        logger.debug(f"Sending {len(payload['messages'])} messages to {self.base_url}/chat/completions")

        try:
            response = self.http_client.post(
                f"{self.base_url}/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=payload
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"OpenAI returned HTTP {status}: {e.response.text}")
            raise CompletionTransportError(
                f"OpenAI request failed with status {status}",
                cause=e,
                details={"status_code": status, "model": self.model}
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"HTTP request to OpenAI failed: {e}")
            raise CompletionTransportError(
                f"HTTP request to OpenAI failed: {e}",
                cause=e,
                details={"model": self.model}
            ) from e

        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"Failed to parse JSON response from OpenAI: {e}")
            raise CompletionParseError(
                f"OpenAI response is not valid JSON: {e}",
                cause=e,
                details={"model": self.model}
            ) from e

        if not isinstance(body, dict):
            raise CompletionParseError(
                f"OpenAI response is a JSON {type(body).__name__}, expected an object",
                details={"model": self.model}
            )

        completion = extract_completion_text(body)
        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(f"Received completion: model={self.model}, chars={len(completion)}, latency={latency_ms}ms")
        return completion


class GroqCompletionClient(CompletionProvider):
    """Client for interfacing with Groq API for text generation."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None
    ):
        """
        Initialize client with Groq API key.

        Args:
            api_key: Groq API key (defaults to GROQ_API_KEY from environment)
            model: Model name (defaults to GROQ_MODEL)
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature

        Raises:
            ConfigurationError: If no API key is available
        """
        self.api_key = api_key or GROQ_API_KEY
        if not self.api_key:
            raise ConfigurationError("GROQ_API_KEY must be provided or set in environment")

        self.model = model or GROQ_MODEL
        self.max_tokens = max_tokens if max_tokens is not None else COMPLETION_MAX_TOKENS
        self.temperature = temperature if temperature is not None else COMPLETION_TEMPERATURE
        self.client = Groq(api_key=self.api_key, timeout=HTTP_TIMEOUT)
        logger.info(f"GroqCompletionClient initialized (model={self.model})")

    def complete(self, messages: Sequence[Message]) -> str:
        start_time = time.time()

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=list(messages),
                max_tokens=self.max_tokens,
                temperature=self.temperature
            )
        except APIResponseValidationError as e:
            logger.error(f"Groq response failed validation: {e}", exc_info=True)
            raise CompletionParseError(
                f"Groq response is not in the expected shape: {e}",
                cause=e,
                details={"model": self.model}
            ) from e
        except APIError as e:
            latency_ms = int((time.time() - start_time) * 1000)
            logger.error(f"Groq API error: model={self.model}, latency={latency_ms}ms, error={e}", exc_info=True)
            raise CompletionTransportError(
                f"Groq API error: {e}",
                cause=e,
                details={
                    "model": self.model,
                    "latency_ms": latency_ms,
                    "status_code": getattr(e, "status_code", None)
                }
            ) from e

        choices: List[Any] = list(getattr(response, "choices", None) or [])
        message = getattr(choices[0], "message", None) if choices else None
        content = getattr(message, "content", None)
        if not isinstance(content, str):
            logger.warning("Groq response has no message content; returning empty completion")
            content = ""

        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(f"Received completion: model={self.model}, chars={len(content)}, latency={latency_ms}ms")
        return content
