"""LLM grammar correction.

Provides the grammar-correction stage that runs between transcription and
the personal vocabulary pass.
"""

from voice_scribe.llm.base import (
    GrammarProvider,
    GrammarResult,
    LLMConfig,
    LLMProviderType,
)
from voice_scribe.llm.openai import OpenAIGrammarCorrector
from voice_scribe.llm.prompts import DEFAULT_GRAMMAR_PROMPT, GrammarPromptBuilder

__all__ = [
    "GrammarProvider",
    "GrammarResult",
    "LLMConfig",
    "LLMProviderType",
    "OpenAIGrammarCorrector",
    "GrammarPromptBuilder",
    "DEFAULT_GRAMMAR_PROMPT",
    "get_grammar_provider",
]


def get_grammar_provider(config: LLMConfig | None = None) -> GrammarProvider:
    """Factory function to get the configured grammar provider.

    Args:
        config: LLM configuration

    Returns:
        GrammarProvider instance based on config
    """
    if config is None:
        config = LLMConfig()

    if config.provider == LLMProviderType.OPENAI:
        return OpenAIGrammarCorrector(config)
    raise ValueError(f"Unsupported LLM provider: {config.provider}")
