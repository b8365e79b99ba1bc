"""Personal vocabulary corrections for transcribed text.

Each word token is resolved exact-match first, then fuzzy. Fuzzy
corrections are reported so the user can review and undo them; undone
corrections go on a discard list that suppresses that specific
(word, matched key) pair on later runs.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Mapping

from voice_scribe.vocabulary.casing import WORD_PATTERN, iter_words, match_case
from voice_scribe.vocabulary.index import CorrectionIndex
from voice_scribe.vocabulary.matcher import ApproxMatcher


@dataclass
class FuzzyMatch:
    """A fuzzy correction applied to the text.

    Attributes:
        original_word: Token as found in the text, original casing
        corrected_word: Case-adjusted replacement written to the output
        matched_key: Dictionary key the fuzzy search selected
        score: Normalized distance between token and key (always > 0)
        position: 1-based index of the token among all word tokens
    """

    original_word: str
    corrected_word: str
    matched_key: str
    score: float
    position: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "original_word": self.original_word,
            "corrected_word": self.corrected_word,
            "matched_key": self.matched_key,
            "score": self.score,
            "position": self.position,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FuzzyMatch":
        """Create from dictionary."""
        return cls(
            original_word=data["original_word"],
            corrected_word=data["corrected_word"],
            matched_key=data["matched_key"],
            score=float(data["score"]),
            position=int(data["position"]),
        )


@dataclass
class TransformResult:
    """Output of a transformation pass.

    fuzzy_matches is keyed by corrected word. If two tokens fuzzy-correct
    to the same string, the later one replaces the earlier entry.
    """

    transformed_text: str
    fuzzy_matches: dict[str, FuzzyMatch] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "transformed_text": self.transformed_text,
            "fuzzy_matches": {k: m.to_dict() for k, m in self.fuzzy_matches.items()},
        }


class WordTransformer:
    """Rewrites text using a user's correction dictionary.

    Holds no state between calls to transform(); the index and discard
    list are fixed at construction.
    """

    # Largest allowed length difference, as a fraction of the longer word
    DEFAULT_MAX_LENGTH_RATIO = 0.2

    def __init__(
        self,
        index: CorrectionIndex,
        discarded_fuzzy: Mapping[str, str] | None = None,
        fuzzy_enabled: bool = True,
        max_length_ratio: float = DEFAULT_MAX_LENGTH_RATIO,
    ):
        """Initialize transformer.

        Args:
            index: Correction index built from the user's dictionary
            discarded_fuzzy: Lowercased word -> matched key pairs to skip
            fuzzy_enabled: Whether to attempt fuzzy matches at all
            max_length_ratio: Length guard for fuzzy matches
        """
        self.index = index
        self.discarded_fuzzy = {
            k.lower(): v.lower() for k, v in (discarded_fuzzy or {}).items()
        }
        self.fuzzy_enabled = fuzzy_enabled
        self.max_length_ratio = max_length_ratio

    def transform(self, text: str) -> TransformResult:
        """Apply exact and fuzzy corrections to every word token.

        Args:
            text: Text to rewrite

        Returns:
            TransformResult with the rewritten text and fuzzy match report
        """
        fuzzy_matches: dict[str, FuzzyMatch] = {}
        position = 0

        def replace(match: re.Match[str]) -> str:
            nonlocal position
            position += 1
            word = match.group(0)

            exact = self.index.lookup(word)
            if exact is not None:
                return match_case(exact, word)

            if not self.fuzzy_enabled:
                return word

            fuzzy = self._resolve_fuzzy(word, position)
            if fuzzy is None:
                return word

            fuzzy_matches[fuzzy.corrected_word] = fuzzy
            return fuzzy.corrected_word

        transformed = WORD_PATTERN.sub(replace, text)
        return TransformResult(transformed_text=transformed, fuzzy_matches=fuzzy_matches)

    def _resolve_fuzzy(self, word: str, position: int) -> FuzzyMatch | None:
        """Find an acceptable fuzzy correction for a word.

        Returns:
            FuzzyMatch if a candidate passes every guard, else None
        """
        candidate = self.index.closest(word)
        if candidate is None or candidate.score <= 0:
            return None

        key = candidate.item
        longest = max(len(word), len(key))
        if abs(len(word) - len(key)) > self.max_length_ratio * longest:
            return None

        if self.discarded_fuzzy.get(word.lower()) == key:
            return None

        return FuzzyMatch(
            original_word=word,
            corrected_word=match_case(self.index[key], word),
            matched_key=key,
            score=candidate.score,
            position=position,
        )


def apply_word_transformations(
    text: str,
    transformations: Mapping[str, str] | None,
    discarded_fuzzy: Mapping[str, str] | None = None,
    matcher: ApproxMatcher | None = None,
    fuzzy_enabled: bool = True,
    max_length_ratio: float = WordTransformer.DEFAULT_MAX_LENGTH_RATIO,
) -> TransformResult:
    """Apply a user's word corrections to text.

    With no corrections the text is returned as-is and no index is built.

    Args:
        text: Text to rewrite
        transformations: Incorrect word -> correction (None means empty)
        discarded_fuzzy: Lowercased word -> matched key pairs the user undid
        matcher: Approximate matcher (defaults to LevenshteinMatcher)
        fuzzy_enabled: Whether to attempt fuzzy matches
        max_length_ratio: Length guard for fuzzy matches

    Returns:
        TransformResult with rewritten text and fuzzy match report
    """
    if not transformations:
        return TransformResult(transformed_text=text)

    index = CorrectionIndex(transformations, matcher=matcher)
    transformer = WordTransformer(
        index,
        discarded_fuzzy=discarded_fuzzy,
        fuzzy_enabled=fuzzy_enabled,
        max_length_ratio=max_length_ratio,
    )
    return transformer.transform(text)


def discard_entry_for(match: FuzzyMatch) -> dict[str, str]:
    """Build the discard-list entry that suppresses a fuzzy match.

    Args:
        match: The fuzzy match the user rejected

    Returns:
        Single-entry mapping {original word lowercased: matched key}
    """
    return {match.original_word.lower(): match.matched_key}


def revert_fuzzy_match(text: str, match: FuzzyMatch) -> tuple[str, dict[str, str]]:
    """Undo a fuzzy correction in already-transformed text.

    The token at match.position is restored to the original word if it
    still reads as the corrected word. Earlier multi-word replacements can
    shift positions, so otherwise the first whole-word occurrence of the
    corrected word is restored. If neither is found the text is unchanged.

    Args:
        text: Transformed text
        match: Fuzzy match to undo

    Returns:
        Tuple of (text, discard_entry)
    """
    entry = discard_entry_for(match)

    for position, token in enumerate(iter_words(text), start=1):
        if position == match.position:
            if token.group(0) == match.corrected_word:
                start, end = token.span()
                return text[:start] + match.original_word + text[end:], entry
            break

    pattern = re.compile(r"(?<!\w)" + re.escape(match.corrected_word) + r"(?!\w)")
    found = pattern.search(text)
    if found:
        start, end = found.span()
        return text[:start] + match.original_word + text[end:], entry

    return text, entry
