"""Tests for personal vocabulary corrections."""

import pytest
from unittest.mock import patch

from voice_scribe.errors import ValidationError
from voice_scribe.vocabulary.casing import count_words, match_case, split_tokens
from voice_scribe.vocabulary.correction import (
    FuzzyMatch,
    TransformResult,
    WordTransformer,
    apply_word_transformations,
    discard_entry_for,
    revert_fuzzy_match,
)
from voice_scribe.vocabulary.index import CorrectionIndex
from voice_scribe.vocabulary.matcher import LevenshteinMatcher, MatchCandidate


class TestMatchCase:
    """Tests for match_case."""

    def test_all_caps(self):
        """All-caps original gives all-caps replacement."""
        assert match_case("world", "HELLO") == "WORLD"

    def test_capitalized(self):
        """Capitalized original capitalizes only the first character."""
        assert match_case("world", "Hello") == "World"
        assert match_case("new york", "Hello") == "New york"
        assert match_case("iPhone", "Hello") == "IPhone"

    def test_lowercase(self):
        """Lowercase original leaves replacement as given."""
        assert match_case("world", "hello") == "world"
        assert match_case("GREAT", "good") == "GREAT"

    def test_no_letters(self):
        """Originals without letters leave replacement unchanged."""
        assert match_case("world", "123") == "world"
        assert match_case("world", "_") == "world"

    def test_mixed_case_original(self):
        """Mixed case with a capital first letter counts as capitalized."""
        assert match_case("world", "HeLLo") == "World"
        assert match_case("world", "hELLO") == "world"

    def test_empty_inputs(self):
        """Empty strings are handled."""
        assert match_case("", "Hello") == ""
        assert match_case("world", "") == "world"


class TestTokenizer:
    """Tests for word tokenization."""

    def test_split_keeps_separators(self):
        """Pieces join back to the original text."""
        text = "Hello, world! It's 9am_ok..."
        pieces = split_tokens(text)

        assert "".join(p for p, _ in pieces) == text
        assert [p for p, is_word in pieces if is_word] == ["Hello", "world", "It", "s", "9am_ok"]

    def test_leading_and_trailing_separators(self):
        """Text starting and ending with punctuation."""
        assert split_tokens("...hi!") == [("...", False), ("hi", True), ("!", False)]

    def test_count_words(self):
        """Counting word tokens."""
        assert count_words("one, two; three") == 3
        assert count_words("") == 0
        assert count_words("?!") == 0


class TestLevenshteinMatcher:
    """Tests for LevenshteinMatcher."""

    def test_best_match(self):
        """Closest candidate is returned with its distance."""
        result = LevenshteinMatcher().best_match("shell", ["hell", "hello"])

        assert result is not None
        assert result.item == "hell"
        assert result.score == pytest.approx(0.2)

    def test_no_close_candidate(self):
        """Nothing within threshold gives None."""
        assert LevenshteinMatcher().best_match("xyz", ["hello", "world"]) is None

    def test_min_length(self):
        """Short queries and short candidates are never matched."""
        matcher = LevenshteinMatcher(threshold=1.0)

        assert matcher.best_match("a", ["ab", "abc"]) is None
        assert matcher.best_match("ab", ["a"]) is None

    def test_empty_candidates(self):
        """No candidates gives None."""
        assert LevenshteinMatcher().best_match("hello", []) is None

    def test_tie_resolves_to_first_candidate(self):
        """Equal scores resolve to candidate order."""
        matcher = LevenshteinMatcher(threshold=0.5)

        assert matcher.best_match("cat", ["bat", "hat"]).item == "bat"
        assert matcher.best_match("cat", ["hat", "bat"]).item == "hat"


class TestCorrectionIndex:
    """Tests for CorrectionIndex."""

    def test_lowercases_keys(self):
        """Lookups ignore case."""
        index = CorrectionIndex({"Hello": "hi", "WORLD": "earth"})

        assert index.lookup("hello") == "hi"
        assert index.lookup("HELLO") == "hi"
        assert index.lookup("World") == "earth"
        assert index.lookup("missing") is None
        assert "hElLo" in index
        assert len(index) == 2

    def test_none_is_empty(self):
        """None builds an empty index."""
        index = CorrectionIndex(None)

        assert len(index) == 0
        assert index.closest("anything") is None

    def test_keys_sorted(self):
        """Keys are kept sorted."""
        index = CorrectionIndex({"zeta": "z", "Alpha": "a", "mid": "m"})
        assert index.keys == ["alpha", "mid", "zeta"]

    def test_tie_break_is_lexicographic(self):
        """Equal-score fuzzy candidates resolve to the smallest key."""
        index = CorrectionIndex(
            {"hat": "cap", "bat": "club"},
            matcher=LevenshteinMatcher(threshold=0.5),
        )
        assert index.closest("cat").item == "bat"

    def test_closest_lowercases_query(self):
        """Fuzzy lookup compares lowercased words."""
        index = CorrectionIndex({"hell": "heaven"})
        candidate = index.closest("SHELL")

        assert isinstance(candidate, MatchCandidate)
        assert candidate.item == "hell"
        assert candidate.score == pytest.approx(0.2)

    def test_rejects_non_string_entries(self):
        """Malformed entries raise ValidationError."""
        with pytest.raises(ValidationError):
            CorrectionIndex({"hello": 42})


class TestApplyWordTransformations:
    """Tests for apply_word_transformations."""

    def test_replaces_single_word(self):
        """Exact match replaces the word."""
        result = apply_word_transformations("hello world", {"hello": "hi"}, {})

        assert result.transformed_text == "hi world"
        assert result.fuzzy_matches == {}

    def test_case_insensitive_with_case_preserved(self):
        """Matching ignores case and keeps each token's casing style."""
        result = apply_word_transformations("Hello HELLO hello", {"hello": "hi"}, {})

        assert result.transformed_text == "Hi HI hi"
        assert result.fuzzy_matches == {}

    def test_substring_safe_with_fuzzy_match(self):
        """Rules never fire inside longer words; near-misses become fuzzy matches."""
        result = apply_word_transformations(
            "shell hello shelling",
            {"hell": "heaven", "hello": "hi"},
            {},
        )

        assert result.transformed_text == "heaven hi shelling"
        assert list(result.fuzzy_matches) == ["heaven"]

        match = result.fuzzy_matches["heaven"]
        assert match.original_word == "shell"
        assert match.corrected_word == "heaven"
        assert match.matched_key == "hell"
        assert match.score == pytest.approx(0.2)
        assert match.position == 1

    def test_discarded_fuzzy_match_suppressed(self):
        """Discarded (word, key) pairs are not applied."""
        result = apply_word_transformations(
            "shell hello",
            {"hell": "heaven", "hello": "hi"},
            {"shell": "hell"},
        )

        assert result.transformed_text == "shell hi"
        assert result.fuzzy_matches == {}

    def test_discard_only_applies_to_matched_key(self):
        """A discard entry for a different key does not suppress the match."""
        result = apply_word_transformations(
            "shell",
            {"hell": "heaven"},
            {"shell": "hello"},
        )
        assert result.transformed_text == "heaven"

    def test_discard_ignores_token_case(self):
        """Discard lookups use the lowercased token."""
        result = apply_word_transformations("Shell", {"hell": "heaven"}, {"shell": "hell"})
        assert result.transformed_text == "Shell"

    def test_empty_text(self):
        """Empty input stays empty."""
        result = apply_word_transformations("", {"hello": "hi"}, {})

        assert result.transformed_text == ""
        assert result.fuzzy_matches == {}

    def test_multiple_words(self):
        """Several rules apply in one pass."""
        result = apply_word_transformations(
            "cat dog mouse",
            {"cat": "lion", "dog": "wolf"},
            {},
        )

        assert result.transformed_text == "lion wolf mouse"
        assert result.fuzzy_matches == {}

    def test_no_transformations(self):
        """Empty dictionary returns text unchanged."""
        text = "just a normal sentence"
        result = apply_word_transformations(text, {}, {})

        assert result.transformed_text == text
        assert result.fuzzy_matches == {}

    def test_none_transformations_skip_index(self):
        """No rules means no index is built at all."""
        with patch("voice_scribe.vocabulary.correction.CorrectionIndex") as index_cls:
            result = apply_word_transformations("some text", None, None)

        index_cls.assert_not_called()
        assert result == TransformResult(transformed_text="some text")

    def test_no_matches(self):
        """Unrelated words pass through."""
        text = "there is nothing to change"
        result = apply_word_transformations(text, {"hello": "hi", "world": "earth"}, {})

        assert result.transformed_text == text
        assert result.fuzzy_matches == {}

    def test_punctuation(self):
        """Punctuation around words is kept."""
        result = apply_word_transformations(
            "Hello, world! Hello...",
            {"hello": "hi", "world": "earth"},
            {},
        )

        assert result.transformed_text == "Hi, earth! Hi..."
        assert result.fuzzy_matches == {}

    def test_uppercase_values(self):
        """Replacement casing is kept for lowercase tokens."""
        result = apply_word_transformations("good morning", {"good": "GREAT"}, {})
        assert result.transformed_text == "GREAT morning"

    def test_mixed_case_keys(self):
        """Dictionary keys are matched case-insensitively."""
        result = apply_word_transformations("use kubectl", {"KubeCtl": "kubectl-cli"})
        assert result.transformed_text == "use kubectl-cli"

    def test_fuzzy_match_keeps_case(self):
        """Fuzzy replacements take the token's casing style."""
        result = apply_word_transformations("Shell SHELL", {"hell": "heaven"})

        assert result.transformed_text == "Heaven HEAVEN"
        assert set(result.fuzzy_matches) == {"Heaven", "HEAVEN"}
        assert result.fuzzy_matches["Heaven"].original_word == "Shell"
        assert result.fuzzy_matches["HEAVEN"].position == 2

    def test_position_counts_every_word(self):
        """Position is the 1-based index among all word tokens."""
        result = apply_word_transformations(
            "Well, the shell is here.",
            {"hell": "heaven"},
        )

        assert result.transformed_text == "Well, the heaven is here."
        assert result.fuzzy_matches["heaven"].position == 3

    def test_collision_keeps_last(self):
        """Two words fuzzy-corrected to the same string keep the later record."""
        result = apply_word_transformations("shell hells", {"hell": "heaven"})

        assert result.transformed_text == "heaven heaven"
        assert len(result.fuzzy_matches) == 1
        match = result.fuzzy_matches["heaven"]
        assert match.original_word == "hells"
        assert match.position == 2

    def test_exact_match_never_reported(self):
        """Exact matches do not appear in fuzzy matches."""
        result = apply_word_transformations("Hell hell", {"hell": "heaven"})

        assert result.transformed_text == "Heaven heaven"
        assert result.fuzzy_matches == {}

    def test_fuzzy_scores_positive(self):
        """Every reported fuzzy match has a positive score."""
        result = apply_word_transformations(
            "kubernet helo shell",
            {"kubernetes": "Kubernetes", "hello": "hi", "hell": "heaven"},
        )

        assert result.fuzzy_matches
        assert all(m.score > 0 for m in result.fuzzy_matches.values())

    def test_length_guard(self):
        """Large length differences are rejected even when within threshold."""
        loose = LevenshteinMatcher(threshold=0.5)

        rejected = apply_word_transformations(
            "kuberne", {"kubernetes": "Kubernetes"}, matcher=loose
        )
        accepted = apply_word_transformations(
            "kuberne", {"kubernetes": "Kubernetes"}, matcher=loose, max_length_ratio=0.5
        )

        assert rejected.transformed_text == "kuberne"
        assert rejected.fuzzy_matches == {}
        assert accepted.transformed_text == "Kubernetes"

    def test_length_guard_boundary(self):
        """A difference of exactly the allowed ratio is accepted."""
        result = apply_word_transformations("kubernet", {"kubernetes": "Kubernetes"})

        assert result.transformed_text == "Kubernetes"
        assert result.fuzzy_matches["Kubernetes"].score == pytest.approx(0.2)

    def test_fuzzy_disabled(self):
        """Only exact matches apply when fuzzy matching is off."""
        result = apply_word_transformations(
            "shell hello",
            {"hell": "heaven", "hello": "hi"},
            fuzzy_enabled=False,
        )

        assert result.transformed_text == "shell hi"
        assert result.fuzzy_matches == {}

    def test_single_character_keys_exact_only(self):
        """Single-character keys still match exactly but never fuzzily."""
        result = apply_word_transformations("a b", {"a": "the"})

        assert result.transformed_text == "the b"
        assert result.fuzzy_matches == {}

    def test_underscore_joins_token(self):
        """Underscores are word characters."""
        result = apply_word_transformations("foo_bar foo", {"foo": "baz"})
        assert result.transformed_text == "foo_bar baz"

    def test_deterministic(self):
        """Same inputs always give the same output."""
        args = ("shell hells helo", {"hell": "heaven", "hello": "hi", "help": "aid"})

        first = apply_word_transformations(*args)
        second = apply_word_transformations(*args)

        assert first.to_dict() == second.to_dict()

    def test_input_dictionaries_not_mutated(self):
        """Caller dictionaries are left untouched."""
        transformations = {"Hell": "heaven"}
        discarded = {"SHELL": "HELLO"}

        apply_word_transformations("shell", transformations, discarded)

        assert transformations == {"Hell": "heaven"}
        assert discarded == {"SHELL": "HELLO"}

    def test_malformed_entries_raise(self):
        """Non-string values are reported to the caller."""
        with pytest.raises(ValidationError):
            apply_word_transformations("hello", {"hello": None})


class TestWordTransformer:
    """Tests for WordTransformer reuse."""

    def test_reusable_across_texts(self):
        """A transformer keeps no state between calls."""
        transformer = WordTransformer(CorrectionIndex({"hell": "heaven"}))

        first = transformer.transform("shell")
        second = transformer.transform("nothing here")

        assert first.fuzzy_matches["heaven"].position == 1
        assert second.transformed_text == "nothing here"
        assert second.fuzzy_matches == {}


class TestFuzzyMatch:
    """Tests for FuzzyMatch serialization."""

    def test_to_dict(self):
        """Dictionary form uses snake_case keys."""
        match = FuzzyMatch("shell", "heaven", "hell", 0.2, 1)

        assert match.to_dict() == {
            "original_word": "shell",
            "corrected_word": "heaven",
            "matched_key": "hell",
            "score": 0.2,
            "position": 1,
        }
        assert FuzzyMatch.from_dict(match.to_dict()) == match


class TestRevertFuzzyMatch:
    """Tests for undoing fuzzy corrections."""

    def test_discard_entry(self):
        """Discard entry maps the lowercased original to the matched key."""
        match = FuzzyMatch("Shell", "Heaven", "hell", 0.2, 1)
        assert discard_entry_for(match) == {"shell": "hell"}

    def test_revert_at_position(self):
        """The corrected token is restored to the original word."""
        result = apply_word_transformations(
            "shell hello shelling", {"hell": "heaven", "hello": "hi"}
        )
        match = result.fuzzy_matches["heaven"]

        text, entry = revert_fuzzy_match(result.transformed_text, match)

        assert text == "shell hi shelling"
        assert entry == {"shell": "hell"}

    def test_revert_then_rerun_is_suppressed(self):
        """The discard entry stops the same correction next time."""
        transformations = {"hell": "heaven"}
        result = apply_word_transformations("Shell game", transformations)
        _, entry = revert_fuzzy_match(result.transformed_text, result.fuzzy_matches["Heaven"])

        rerun = apply_word_transformations("Shell game", transformations, entry)

        assert rerun.transformed_text == "Shell game"
        assert rerun.fuzzy_matches == {}

    def test_revert_after_position_shift(self):
        """Multi-word exact replacements shift positions; the word is still found."""
        result = apply_word_transformations("btw shell", {"btw": "by the way", "hell": "heaven"})
        assert result.transformed_text == "by the way heaven"

        text, _ = revert_fuzzy_match(result.transformed_text, result.fuzzy_matches["heaven"])
        assert text == "by the way shell"

    def test_revert_missing_word(self):
        """Text without the corrected word is unchanged."""
        match = FuzzyMatch("shell", "heaven", "hell", 0.2, 1)
        text, entry = revert_fuzzy_match("nothing to see", match)

        assert text == "nothing to see"
        assert entry == {"shell": "hell"}
