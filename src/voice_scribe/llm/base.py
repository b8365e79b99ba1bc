"""Base classes and types for LLM grammar correction.

Defines the abstract interface for grammar providers and their results.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any


class LLMProviderType(str, Enum):
    """Supported LLM provider types."""

    OPENAI = "openai"


@dataclass
class LLMConfig:
    """Configuration for an LLM provider.

    Attributes:
        provider: Which LLM provider to use
        api_key: API key for the provider (or use env variable)
        model: Model name/ID to use
        temperature: Sampling temperature
        timeout: Request timeout in seconds
        max_retries: Attempts for transient failures
    """

    provider: LLMProviderType = LLMProviderType.OPENAI
    api_key: str | None = None
    model: str | None = None
    temperature: float = 0.0
    timeout: float = 30.0
    max_retries: int = 2

    def __post_init__(self):
        """Set default model based on provider."""
        if self.model is None:
            if self.provider == LLMProviderType.OPENAI:
                self.model = "gpt-4-1106-preview"


@dataclass
class GrammarResult:
    """Result of a grammar-correction request.

    Attributes:
        corrected_text: Corrected text (the input if nothing changed)
        duration: Wall-clock time in seconds
        model: Model that produced the correction
        tokens_used: Total tokens consumed
    """

    corrected_text: str
    duration: float = 0.0
    model: str = ""
    tokens_used: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "corrected_text": self.corrected_text,
            "duration": self.duration,
            "model": self.model,
            "tokens_used": self.tokens_used,
        }


class GrammarProvider(ABC):
    """Abstract base class for grammar-correction providers."""

    def __init__(self, config: LLMConfig):
        """Initialize the provider.

        Args:
            config: LLM configuration
        """
        self.config = config

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get the provider name."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider can be used (API key set, etc)."""
        pass

    @abstractmethod
    def correct(self, text: str, prompt: str | None = None) -> GrammarResult:
        """Correct grammar and spelling in text.

        Args:
            text: Text to correct
            prompt: Custom instruction replacing the default prompt

        Returns:
            GrammarResult with the corrected text

        Raises:
            VoiceScribeError: If the provider call fails
        """
        pass
