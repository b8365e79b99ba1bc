"""Spelling suggestions from a static vocabulary list.

Used when a user clicks a word to pick a replacement. The suggester is
built once by whoever owns the vocabulary and passed to callers.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from rapidfuzz import process
from rapidfuzz.distance import Levenshtein

from voice_scribe.errors import ResourceError, ValidationError

_NON_WORD = re.compile(r"[^\w]")


def clean_word(word: str) -> str:
    """Strip everything except word characters."""
    return _NON_WORD.sub("", word)


@dataclass(frozen=True)
class Suggestion:
    """A suggested replacement word."""

    word: str
    score: float  # Normalized distance, lower is closer

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"word": self.word, "score": self.score}


class VocabularySuggester:
    """Ranks vocabulary entries by closeness to a word.

    Example:
        suggester = VocabularySuggester(["kubernetes", "docker", "helm"])
        suggester.suggest("kubernets")  # [Suggestion("kubernetes", 0.1)]
    """

    DEFAULT_THRESHOLD = 0.3
    DEFAULT_LIMIT = 5

    def __init__(self, vocabulary: Iterable[str], threshold: float = DEFAULT_THRESHOLD):
        """Initialize suggester.

        Args:
            vocabulary: Known words, in preference order
            threshold: Maximum normalized distance for a suggestion
        """
        seen: set[str] = set()
        self._vocabulary: list[str] = []
        for word in vocabulary:
            if word and word not in seen:
                seen.add(word)
                self._vocabulary.append(word)
        self.threshold = threshold

    def __len__(self) -> int:
        return len(self._vocabulary)

    @classmethod
    def from_file(cls, path: Path | str, threshold: float = DEFAULT_THRESHOLD) -> "VocabularySuggester":
        """Load vocabulary from a JSON list of words.

        Args:
            path: Path to JSON file
            threshold: Maximum normalized distance for a suggestion

        Raises:
            ResourceError: If the file does not exist
            ValidationError: If the file is not a JSON list of strings
        """
        path = Path(path)
        if not path.exists():
            raise ResourceError(f"Vocabulary file not found: {path}")

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON in {path}: {e}") from e

        if not isinstance(data, list) or not all(isinstance(w, str) for w in data):
            raise ValidationError(f"Vocabulary file must be a JSON list of words: {path}")

        return cls(data, threshold=threshold)

    def suggest(self, word: str, limit: int = DEFAULT_LIMIT) -> list[Suggestion]:
        """Suggest vocabulary words close to word.

        The word itself is never suggested, ignoring case and punctuation.

        Args:
            word: Word to find suggestions for
            limit: Maximum number of suggestions

        Returns:
            Suggestions sorted closest first; ties keep vocabulary order
        """
        cleaned = clean_word(word)
        if not cleaned or limit <= 0:
            return []

        query = cleaned.lower()
        results = process.extract(
            query,
            self._vocabulary,
            scorer=Levenshtein.normalized_distance,
            processor=str.lower,
            score_cutoff=self.threshold,
            limit=None,
        )

        suggestions = [
            Suggestion(word=item, score=float(score))
            for item, score, _ in sorted(results, key=lambda r: (r[1], r[2]))
            if clean_word(item).lower() != query
        ]
        return suggestions[:limit]
