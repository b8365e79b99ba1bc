"""Personal vocabulary corrections.

Rewrites transcribed text with a user's own word corrections, using exact
case-insensitive matches first and guarded fuzzy matches second.
"""

from voice_scribe.vocabulary.casing import match_case, split_tokens
from voice_scribe.vocabulary.correction import (
    FuzzyMatch,
    TransformResult,
    WordTransformer,
    apply_word_transformations,
    discard_entry_for,
    revert_fuzzy_match,
)
from voice_scribe.vocabulary.index import CorrectionIndex
from voice_scribe.vocabulary.matcher import ApproxMatcher, LevenshteinMatcher, MatchCandidate
from voice_scribe.vocabulary.suggest import Suggestion, VocabularySuggester

__all__ = [
    "match_case",
    "split_tokens",
    "FuzzyMatch",
    "TransformResult",
    "WordTransformer",
    "apply_word_transformations",
    "discard_entry_for",
    "revert_fuzzy_match",
    "CorrectionIndex",
    "ApproxMatcher",
    "LevenshteinMatcher",
    "MatchCandidate",
    "Suggestion",
    "VocabularySuggester",
]
