"""Word tokenization and case matching.

Text is split into maximal runs of word characters (letters, digits,
underscore). Everything between runs is left untouched, so a rule for
"hell" can never fire inside "shelling".
"""

from __future__ import annotations

import re
from typing import Iterator

WORD_PATTERN = re.compile(r"\w+")


def iter_words(text: str) -> Iterator[re.Match[str]]:
    """Iterate over word tokens in text, in order.

    Args:
        text: Text to scan

    Returns:
        Iterator of regex matches, one per word token
    """
    return WORD_PATTERN.finditer(text)


def split_tokens(text: str) -> list[tuple[str, bool]]:
    """Split text into alternating separator and word pieces.

    Joining the pieces gives back the original text.

    Args:
        text: Text to split

    Returns:
        List of (piece, is_word) tuples
    """
    pieces: list[tuple[str, bool]] = []
    last = 0
    for match in iter_words(text):
        if match.start() > last:
            pieces.append((text[last:match.start()], False))
        pieces.append((match.group(0), True))
        last = match.end()
    if last < len(text):
        pieces.append((text[last:], False))
    return pieces


def count_words(text: str) -> int:
    """Count word tokens in text."""
    return sum(1 for _ in iter_words(text))


def match_case(replacement: str, original: str) -> str:
    """Apply the capitalization style of original to replacement.

    All-caps originals give an all-caps replacement, a capitalized original
    only uppercases the first character of the replacement, and anything
    else returns the replacement as given.

    Args:
        replacement: Word to insert
        original: Word whose casing style should be kept

    Returns:
        Replacement with matching case style
    """
    if not original or not replacement:
        return replacement

    if original.isupper():
        return replacement.upper()
    if original[0].isupper():
        return replacement[0].upper() + replacement[1:]
    return replacement
