"""Prompt templates for grammar correction."""

from __future__ import annotations

import json
from dataclasses import dataclass

DEFAULT_GRAMMAR_PROMPT = "Correct the grammar and spelling in the following text."

JSON_RESPONSE_INSTRUCTION = (
    ' Return ONLY the corrected text in JSON format: {"corrected": "..."}'
)


@dataclass
class GrammarPromptBuilder:
    """Builds the messages sent to the grammar-correction model.

    Attributes:
        base_prompt: Instruction used when the user has no prompt of their own
    """

    base_prompt: str = DEFAULT_GRAMMAR_PROMPT

    def build_system_prompt(self, user_prompt: str | None = None) -> str:
        """Build the system prompt.

        Args:
            user_prompt: The user's custom prompt, if any

        Returns:
            System prompt asking for a JSON response
        """
        return (user_prompt or self.base_prompt) + JSON_RESPONSE_INSTRUCTION

    def build_messages(self, text: str, user_prompt: str | None = None) -> list[dict[str, str]]:
        """Build the chat messages for a correction request."""
        return [
            {"role": "system", "content": self.build_system_prompt(user_prompt)},
            {"role": "user", "content": text},
        ]

    @staticmethod
    def max_tokens_for(text: str) -> int:
        """Response token budget for a text."""
        return max(len(text) * 2, 1000)

    @staticmethod
    def parse_response(content: str | None, fallback: str) -> str:
        """Extract the corrected text from a model response.

        Args:
            content: Raw response content
            fallback: Text to return when the response has no correction

        Returns:
            Corrected text, or fallback

        Raises:
            ValueError: If content is empty or not a JSON object
        """
        if not content:
            raise ValueError("No response content from grammar model")

        data = json.loads(content)
        if not isinstance(data, dict):
            raise ValueError("Grammar model response is not a JSON object")

        corrected = data.get("corrected")
        if isinstance(corrected, str) and corrected:
            return corrected
        return fallback


DEFAULT_PROMPT_BUILDER = GrammarPromptBuilder()
