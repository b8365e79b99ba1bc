"""Case-insensitive index over a user's word corrections."""

from __future__ import annotations

from typing import Mapping

from voice_scribe.errors import ValidationError
from voice_scribe.vocabulary.matcher import ApproxMatcher, LevenshteinMatcher, MatchCandidate


class CorrectionIndex:
    """Lowercased lookup table plus a fuzzy search surface over its keys.

    Built once per transformation call from the caller's correction
    dictionary and discarded afterwards.
    """

    def __init__(
        self,
        transformations: Mapping[str, str] | None = None,
        matcher: ApproxMatcher | None = None,
    ):
        """Build the index.

        Args:
            transformations: Mapping of incorrect word -> correction.
                None is treated as empty.
            matcher: Approximate matcher for fuzzy lookups

        Raises:
            ValidationError: If a key or value is not a string
        """
        self._map: dict[str, str] = {}
        for key, value in (transformations or {}).items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise ValidationError(
                    "Correction entries must map strings to strings",
                    context={"key": repr(key)},
                )
            self._map[key.lower()] = value

        # Sorted so equal-score fuzzy ties resolve the same way every run
        self._keys: list[str] = sorted(self._map)
        self.matcher = matcher or LevenshteinMatcher()

    def __len__(self) -> int:
        return len(self._map)

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and word.lower() in self._map

    def __getitem__(self, key: str) -> str:
        return self._map[key.lower()]

    @property
    def keys(self) -> list[str]:
        """Lowercased keys in sorted order."""
        return list(self._keys)

    def lookup(self, word: str) -> str | None:
        """Get the exact correction for a word, ignoring case.

        Args:
            word: Word to look up

        Returns:
            Correction value, or None if the word has no exact entry
        """
        return self._map.get(word.lower())

    def closest(self, word: str) -> MatchCandidate | None:
        """Find the closest key to a word.

        Args:
            word: Word to look up (compared lowercased)

        Returns:
            Best MatchCandidate, or None if no key is close enough
        """
        if not self._keys:
            return None
        return self.matcher.best_match(word.lower(), self._keys)
