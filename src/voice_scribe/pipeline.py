"""Correction pipeline: transcription -> grammar -> personal vocabulary.

A failure in one stage never blocks the user's text. A failed grammar
correction passes its input through, and a failed vocabulary pass returns
the text unchanged.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from voice_scribe.config import GrammarSettings, MatchingSettings
from voice_scribe.llm.base import GrammarProvider
from voice_scribe.llm.prompts import DEFAULT_GRAMMAR_PROMPT
from voice_scribe.logging import (
    get_logger,
    log_operation_complete,
    log_operation_failed,
    log_operation_start,
)
from voice_scribe.transcription.base import TranscriptionProvider
from voice_scribe.vocabulary.correction import (
    FuzzyMatch,
    TransformResult,
    apply_word_transformations,
)
from voice_scribe.vocabulary.matcher import LevenshteinMatcher

logger = get_logger(__name__)


@dataclass
class CorrectionResult:
    """Final text for one piece of dictation.

    Attributes:
        original_text: Text before grammar correction
        corrected_text: Text after grammar and vocabulary corrections
        fuzzy_matches: Fuzzy corrections keyed by corrected word
        duration: Seconds spent in grammar + vocabulary stages
        grammar_applied: Whether the grammar stage produced the text
    """

    original_text: str
    corrected_text: str
    fuzzy_matches: dict[str, FuzzyMatch] = field(default_factory=dict)
    duration: float = 0.0
    grammar_applied: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "original_text": self.original_text,
            "corrected_text": self.corrected_text,
            "fuzzy_matches": {k: m.to_dict() for k, m in self.fuzzy_matches.items()},
            "duration": self.duration,
            "grammar_applied": self.grammar_applied,
        }


@dataclass
class DictationResult:
    """Transcription plus its corrections."""

    transcript: str
    correction: CorrectionResult
    transcription_duration: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "transcript": self.transcript,
            "transcription_duration": self.transcription_duration,
            **self.correction.to_dict(),
        }


def apply_user_transformations(
    text: str,
    transformations: Mapping[str, str] | None,
    discarded_fuzzy: Mapping[str, str] | None = None,
    settings: MatchingSettings | None = None,
) -> TransformResult:
    """Apply a user's vocabulary corrections without ever raising.

    Args:
        text: Text to rewrite
        transformations: User's word correction dictionary
        discarded_fuzzy: User's discarded fuzzy matches
        settings: Fuzzy matching settings

    Returns:
        TransformResult; on any failure the text is returned unchanged
    """
    settings = settings or MatchingSettings()
    try:
        return apply_word_transformations(
            text,
            transformations,
            discarded_fuzzy,
            matcher=LevenshteinMatcher(
                threshold=settings.threshold,
                min_length=settings.min_key_length,
            ),
            fuzzy_enabled=settings.fuzzy_enabled,
            max_length_ratio=settings.max_length_ratio,
        )
    except Exception as e:
        logger.warning(
            f"Transformation failed: {e}",
            extra={"error_type": type(e).__name__},
        )
        return TransformResult(transformed_text=text)


def get_grammar_correction(
    provider: GrammarProvider,
    text: str,
    prompt: str | None = None,
) -> tuple[str, bool]:
    """Run grammar correction, falling back to the input on failure.

    Args:
        provider: Grammar-correction provider
        text: Text to correct
        prompt: User's custom prompt

    Returns:
        Tuple of (text, applied) where applied is False on fallback
    """
    log_operation_start(logger, "grammar correction", chars=len(text))
    try:
        result = provider.correct(text, prompt or DEFAULT_GRAMMAR_PROMPT)
    except Exception as e:
        log_operation_failed(logger, "grammar correction", e)
        return text, False

    log_operation_complete(
        logger,
        "grammar correction",
        duration=result.duration,
        model=result.model,
    )
    return result.corrected_text, True


def process_text(
    text: str,
    grammar: GrammarProvider | None = None,
    grammar_settings: GrammarSettings | None = None,
    matching_settings: MatchingSettings | None = None,
    prompt: str | None = None,
    transformations: Mapping[str, str] | None = None,
    discarded_fuzzy: Mapping[str, str] | None = None,
) -> CorrectionResult:
    """Grammar-correct text, then apply the user's vocabulary.

    Texts shorter than the configured minimum are returned unchanged with
    no corrections of either kind.

    Args:
        text: Transcribed text
        grammar: Grammar provider, or None to skip grammar correction
        grammar_settings: Grammar stage settings
        matching_settings: Vocabulary matching settings
        prompt: User's custom grammar prompt
        transformations: User's word correction dictionary
        discarded_fuzzy: User's discarded fuzzy matches

    Returns:
        CorrectionResult with the final text
    """
    grammar_settings = grammar_settings or GrammarSettings()
    start = time.monotonic()

    if len(text.strip()) < grammar_settings.min_text_length:
        logger.debug("Text too short for correction", extra={"chars": len(text)})
        return CorrectionResult(original_text=text, corrected_text=text)

    corrected, grammar_applied = text, False
    if grammar is not None and grammar_settings.enabled:
        corrected, grammar_applied = get_grammar_correction(
            grammar,
            text,
            prompt or grammar_settings.prompt,
        )

    transformed = apply_user_transformations(
        corrected,
        transformations,
        discarded_fuzzy,
        settings=matching_settings,
    )

    duration = time.monotonic() - start
    logger.info(
        "Correction completed",
        extra={
            "duration_seconds": round(duration, 3),
            "fuzzy_matches": len(transformed.fuzzy_matches),
        },
    )
    logger.debug(f"Original: {text!r} Final: {transformed.transformed_text!r}")

    return CorrectionResult(
        original_text=text,
        corrected_text=transformed.transformed_text,
        fuzzy_matches=transformed.fuzzy_matches,
        duration=duration,
        grammar_applied=grammar_applied,
    )


def transcribe_and_correct(
    audio_path: Path | str,
    transcriber: TranscriptionProvider,
    grammar: GrammarProvider | None = None,
    grammar_settings: GrammarSettings | None = None,
    matching_settings: MatchingSettings | None = None,
    prompt: str | None = None,
    transformations: Mapping[str, str] | None = None,
    discarded_fuzzy: Mapping[str, str] | None = None,
    mime_type: str | None = None,
) -> DictationResult:
    """Transcribe a recording and correct the transcript.

    The user's prompt also conditions the transcription. Transcription
    errors propagate; the correction stages never raise.

    Returns:
        DictationResult with the transcript and final text
    """
    transcription = transcriber.transcribe(audio_path, prompt=prompt, mime_type=mime_type)

    correction = process_text(
        transcription.text,
        grammar=grammar,
        grammar_settings=grammar_settings,
        matching_settings=matching_settings,
        prompt=prompt,
        transformations=transformations,
        discarded_fuzzy=discarded_fuzzy,
    )

    return DictationResult(
        transcript=transcription.text,
        correction=correction,
        transcription_duration=transcription.duration,
    )
