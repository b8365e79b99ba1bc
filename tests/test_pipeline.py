"""Tests for the correction pipeline."""

import logging
import pytest
from unittest.mock import MagicMock, patch

from voice_scribe.config import GrammarSettings, MatchingSettings
from voice_scribe.errors import TimeoutExceededError, ValidationError
from voice_scribe.llm.base import GrammarProvider, GrammarResult, LLMConfig
from voice_scribe.llm.prompts import DEFAULT_GRAMMAR_PROMPT
from voice_scribe.pipeline import (
    apply_user_transformations,
    get_grammar_correction,
    process_text,
    transcribe_and_correct,
)
from voice_scribe.transcription.base import TranscriptionProvider, TranscriptionResult


class FakeGrammar(GrammarProvider):
    """Grammar provider returning a fixed correction."""

    def __init__(self, corrected=None, error=None):
        super().__init__(LLMConfig())
        self.corrected = corrected
        self.error = error
        self.calls = []

    @property
    def provider_name(self):
        return "fake"

    def is_available(self):
        return True

    def correct(self, text, prompt=None):
        self.calls.append((text, prompt))
        if self.error:
            raise self.error
        return GrammarResult(corrected_text=self.corrected or text, model="fake-model")


class FakeTranscriber(TranscriptionProvider):
    """Transcriber returning a fixed transcript."""

    def __init__(self, text):
        self.text = text
        self.calls = []

    @property
    def name(self):
        return "fake"

    def is_available(self):
        return True

    def transcribe(self, audio_path, prompt=None, mime_type=None):
        self.calls.append((audio_path, prompt, mime_type))
        return TranscriptionResult(audio_path=str(audio_path), text=self.text, duration=1.5)


TRANSFORMATIONS = {"hell": "heaven", "kuberneties": "Kubernetes"}


class TestApplyUserTransformations:
    """Tests for apply_user_transformations."""

    def test_applies_corrections(self):
        """Exact and fuzzy corrections are applied."""
        result = apply_user_transformations("deploy kuberneties to shell", TRANSFORMATIONS)

        assert result.transformed_text == "deploy Kubernetes to heaven"
        assert list(result.fuzzy_matches) == ["heaven"]

    def test_respects_discards(self):
        """Discarded pairs are not fuzzy matched."""
        result = apply_user_transformations("the shell", TRANSFORMATIONS, {"shell": "hell"})

        assert result.transformed_text == "the shell"
        assert result.fuzzy_matches == {}

    def test_fuzzy_disabled(self):
        """Settings can turn fuzzy matching off."""
        result = apply_user_transformations(
            "the shell",
            TRANSFORMATIONS,
            settings=MatchingSettings(fuzzy_enabled=False),
        )

        assert result.transformed_text == "the shell"

    def test_failure_returns_text_unchanged(self, caplog):
        """Engine failures are logged and the text passes through."""
        with patch(
            "voice_scribe.pipeline.apply_word_transformations",
            side_effect=RuntimeError("boom"),
        ):
            with caplog.at_level(logging.WARNING, logger="voice_scribe"):
                result = apply_user_transformations("the shell", TRANSFORMATIONS)

        assert result.transformed_text == "the shell"
        assert result.fuzzy_matches == {}
        assert "Transformation failed: boom" in caplog.text

    def test_bad_dictionary_does_not_raise(self):
        """A malformed dictionary never breaks the pipeline."""
        result = apply_user_transformations("the shell", {"hell": 3})

        assert result.transformed_text == "the shell"


class TestGetGrammarCorrection:
    """Tests for get_grammar_correction."""

    def test_success(self):
        """Corrected text is returned."""
        grammar = FakeGrammar("I went home.")

        assert get_grammar_correction(grammar, "i go home") == ("I went home.", True)
        assert grammar.calls == [("i go home", DEFAULT_GRAMMAR_PROMPT)]

    def test_custom_prompt(self):
        """A custom prompt is passed through."""
        grammar = FakeGrammar("I went home.")
        get_grammar_correction(grammar, "i go home", "Fix spelling only.")

        assert grammar.calls == [("i go home", "Fix spelling only.")]

    def test_failure_falls_back(self, caplog):
        """Provider errors fall back to the input."""
        grammar = FakeGrammar(error=TimeoutExceededError("slow", timeout=30.0))

        with caplog.at_level(logging.WARNING, logger="voice_scribe"):
            assert get_grammar_correction(grammar, "i go home") == ("i go home", False)

        assert "Failed: grammar correction" in caplog.text


class TestProcessText:
    """Tests for process_text."""

    def test_grammar_then_vocabulary(self):
        """Vocabulary runs on the grammar-corrected text."""
        grammar = FakeGrammar("We deploy kuberneties to the shell.")

        result = process_text(
            "we deploy kuberneties to shell",
            grammar=grammar,
            transformations=TRANSFORMATIONS,
        )

        assert result.original_text == "we deploy kuberneties to shell"
        assert result.corrected_text == "We deploy Kubernetes to the heaven."
        assert result.grammar_applied is True
        assert result.fuzzy_matches["heaven"].original_word == "shell"

    def test_short_text_unchanged(self):
        """Texts under the minimum length skip both stages."""
        grammar = FakeGrammar("Shell!")

        result = process_text(" shell  ", grammar=grammar, transformations=TRANSFORMATIONS)

        assert result.corrected_text == " shell  "
        assert result.fuzzy_matches == {}
        assert grammar.calls == []

    def test_grammar_failure_still_applies_vocabulary(self):
        """A failed grammar stage does not skip the vocabulary stage."""
        grammar = FakeGrammar(error=RuntimeError("service down"))

        result = process_text("welcome to the shell", grammar=grammar, transformations=TRANSFORMATIONS)

        assert result.corrected_text == "welcome to the heaven"
        assert result.grammar_applied is False

    def test_grammar_disabled(self):
        """Disabled grammar settings skip the provider."""
        grammar = FakeGrammar("Changed.")

        result = process_text(
            "welcome to the shell",
            grammar=grammar,
            grammar_settings=GrammarSettings(enabled=False),
            transformations=TRANSFORMATIONS,
        )

        assert grammar.calls == []
        assert result.corrected_text == "welcome to the heaven"

    def test_prompt_priority(self):
        """The user's prompt wins over the configured prompt."""
        grammar = FakeGrammar()
        settings = GrammarSettings(prompt="Configured prompt.")

        process_text("welcome to the shell", grammar=grammar, grammar_settings=settings)
        process_text("welcome to the shell", grammar=grammar, grammar_settings=settings, prompt="Mine.")

        assert [prompt for _, prompt in grammar.calls] == ["Configured prompt.", "Mine."]

    def test_no_grammar_no_dictionary(self):
        """Without providers or dictionary the text is unchanged."""
        result = process_text("welcome to the shell")

        assert result.corrected_text == "welcome to the shell"
        assert result.to_dict()["fuzzy_matches"] == {}


class TestTranscribeAndCorrect:
    """Tests for transcribe_and_correct."""

    def test_full_flow(self, tmp_path):
        """Transcript is corrected and the prompt conditions both stages."""
        transcriber = FakeTranscriber("we deploy kuberneties to shell")
        grammar = FakeGrammar("We deploy kuberneties to shell.")

        result = transcribe_and_correct(
            tmp_path / "memo.webm",
            transcriber,
            grammar=grammar,
            prompt="Tech terms.",
            transformations=TRANSFORMATIONS,
            mime_type="audio/webm;codecs=opus",
        )

        assert result.transcript == "we deploy kuberneties to shell"
        assert result.correction.corrected_text == "We deploy Kubernetes to heaven."
        assert result.transcription_duration == 1.5
        assert transcriber.calls == [(tmp_path / "memo.webm", "Tech terms.", "audio/webm;codecs=opus")]
        assert grammar.calls == [("we deploy kuberneties to shell", "Tech terms.")]

        data = result.to_dict()
        assert data["transcript"] == "we deploy kuberneties to shell"
        assert data["corrected_text"] == "We deploy Kubernetes to heaven."

    def test_transcription_errors_propagate(self, tmp_path):
        """Transcription failures are not swallowed."""
        transcriber = MagicMock()
        transcriber.transcribe.side_effect = ValidationError("Unsupported file type: text/plain")

        with pytest.raises(ValidationError):
            transcribe_and_correct(tmp_path / "notes.txt", transcriber)
