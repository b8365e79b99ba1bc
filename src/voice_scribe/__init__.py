"""Voice Scribe - dictation with grammar correction and personal vocabulary.

Records are transcribed with Whisper, grammar-corrected with an LLM and then
rewritten with each user's own word corrections:
1. Exact corrections: case-insensitive, preserving the original casing style
2. Fuzzy corrections: near-misspellings of known words, reviewable and undoable
"""

__version__ = "0.1.0"
