"""Transcription module for voice-scribe.

Provides speech-to-text through the OpenAI Whisper API.
"""

from voice_scribe.transcription.base import (
    TranscriptionProvider,
    TranscriptionResult,
    validate_audio_file,
)
from voice_scribe.transcription.whisper_api import WhisperAPIProvider

__all__ = [
    "TranscriptionProvider",
    "TranscriptionResult",
    "validate_audio_file",
    "WhisperAPIProvider",
]
