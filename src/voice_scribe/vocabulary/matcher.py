"""Approximate string matching for fuzzy vocabulary lookups.

Matchers score candidates by distance: 0.0 means identical, larger values
mean more different. Only the single best candidate is returned.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

from rapidfuzz import process
from rapidfuzz.distance import Levenshtein


@dataclass(frozen=True)
class MatchCandidate:
    """Best candidate returned by a matcher.

    Attributes:
        item: The matched candidate string
        score: Normalized distance (0.0 = identical)
    """

    item: str
    score: float


class ApproxMatcher(ABC):
    """Interface for nearest-neighbour lookups over a list of strings."""

    @abstractmethod
    def best_match(
        self,
        query: str,
        candidates: Sequence[str],
    ) -> MatchCandidate | None:
        """Find the closest candidate to query.

        Args:
            query: String to look up
            candidates: Strings to search

        Returns:
            Best MatchCandidate, or None if nothing is close enough
        """
        pass


class LevenshteinMatcher(ApproxMatcher):
    """Matcher using normalized Levenshtein distance.

    The distance is the edit count divided by the longer string's length,
    so "shell" against "hell" scores 0.2. Candidates are compared as flat
    character sequences.

    When several candidates share the best score, the first one in
    candidate order wins. CorrectionIndex passes its keys sorted, which
    makes ties resolve to the lexicographically smallest key.
    """

    DEFAULT_THRESHOLD = 0.2
    DEFAULT_MIN_LENGTH = 2

    def __init__(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        min_length: int = DEFAULT_MIN_LENGTH,
    ):
        """Initialize matcher.

        Args:
            threshold: Maximum normalized distance for a candidate to qualify
            min_length: Shortest query or candidate that may be matched
        """
        self.threshold = threshold
        self.min_length = min_length

    def best_match(
        self,
        query: str,
        candidates: Sequence[str],
    ) -> MatchCandidate | None:
        if len(query) < self.min_length:
            return None

        eligible = [c for c in candidates if len(c) >= self.min_length]
        if not eligible:
            return None

        result = process.extractOne(
            query,
            eligible,
            scorer=Levenshtein.normalized_distance,
            score_cutoff=self.threshold,
        )
        if result is None:
            return None

        item, score, _ = result
        return MatchCandidate(item=item, score=float(score))
