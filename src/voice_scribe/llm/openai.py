"""OpenAI grammar-correction provider.

Sends the text to a chat-completions model and asks for the corrected
text back as a JSON object.
"""

from __future__ import annotations

import os
import time
from typing import Any

from openai import APITimeoutError, OpenAI

from voice_scribe.errors import (
    ConfigurationError,
    ExternalServiceError,
    RetryConfig,
    TimeoutExceededError,
    retry_with_backoff,
    wrap_external_error,
)
from voice_scribe.llm.base import GrammarProvider, GrammarResult, LLMConfig, LLMProviderType
from voice_scribe.llm.prompts import DEFAULT_PROMPT_BUILDER, GrammarPromptBuilder
from voice_scribe.logging import get_logger

logger = get_logger(__name__)


class OpenAIGrammarCorrector(GrammarProvider):
    """Grammar correction through the OpenAI chat-completions API.

    Requires OPENAI_API_KEY environment variable or api_key in config.
    """

    def __init__(
        self,
        config: LLMConfig | None = None,
        prompt_builder: GrammarPromptBuilder | None = None,
        client: Any = None,
    ):
        """Initialize OpenAI provider.

        Args:
            config: LLM configuration
            prompt_builder: Optional custom prompt builder
            client: Pre-built OpenAI client (mainly for tests)
        """
        if config is None:
            config = LLMConfig(provider=LLMProviderType.OPENAI)

        super().__init__(config)
        self.prompt_builder = prompt_builder or DEFAULT_PROMPT_BUILDER
        self._client = client

    @property
    def provider_name(self) -> str:
        return "OpenAI"

    def _get_api_key(self) -> str | None:
        return self.config.api_key or os.environ.get("OPENAI_API_KEY")

    def is_available(self) -> bool:
        return self._client is not None or self._get_api_key() is not None

    def _get_client(self) -> Any:
        """Get or create the OpenAI client.

        Raises:
            ConfigurationError: If no API key is configured
        """
        if self._client is None:
            api_key = self._get_api_key()
            if not api_key:
                raise ConfigurationError(
                    "OPENAI_API_KEY not set. Set environment variable or "
                    "provide api_key in LLMConfig."
                )
            # Retries are handled by retry_with_backoff
            self._client = OpenAI(api_key=api_key, timeout=self.config.timeout, max_retries=0)

        return self._client

    def correct(self, text: str, prompt: str | None = None) -> GrammarResult:
        """Correct grammar and spelling in text.

        Args:
            text: Text to correct
            prompt: Custom instruction replacing the default prompt

        Returns:
            GrammarResult; the input text is kept if the model returns
            no correction

        Raises:
            ConfigurationError: If the API key is missing or rejected
            TimeoutExceededError: If the request times out
            VoiceScribeError: For other API failures or unparseable replies
        """
        start = time.monotonic()
        client = self._get_client()

        request = retry_with_backoff(RetryConfig(max_attempts=max(1, self.config.max_retries)))(
            self._request
        )
        response = request(client, text, prompt)

        try:
            corrected = self.prompt_builder.parse_response(
                response.choices[0].message.content,
                fallback=text,
            )
        except (ValueError, IndexError, AttributeError) as e:
            raise ExternalServiceError(
                f"Could not parse grammar correction response: {e}",
                context={"service": "openai", "model": self.config.model},
                recoverable=False,
            ) from e

        usage = getattr(response, "usage", None)
        return GrammarResult(
            corrected_text=corrected,
            duration=time.monotonic() - start,
            model=self.config.model or "",
            tokens_used=getattr(usage, "total_tokens", 0) or 0,
        )

    def _request(self, client: Any, text: str, prompt: str | None) -> Any:
        try:
            return client.chat.completions.create(
                model=self.config.model,
                response_format={"type": "json_object"},
                messages=self.prompt_builder.build_messages(text, prompt),
                temperature=self.config.temperature,
                max_tokens=self.prompt_builder.max_tokens_for(text),
                timeout=self.config.timeout,
            )
        except APITimeoutError as e:
            raise TimeoutExceededError(
                f"Grammar correction timed out after {self.config.timeout:g} seconds",
                timeout=self.config.timeout,
            ) from e
        except Exception as e:
            raise wrap_external_error(e, "openai", "grammar correction") from e
