"""Base classes for transcription providers.

Defines the abstract interface that all transcription providers implement
and the audio checks applied before upload.
"""

from __future__ import annotations

import mimetypes
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from voice_scribe.errors import ResourceError, ValidationError

# Extension -> mime type for formats mimetypes does not always know
_AUDIO_MIME_TYPES = {
    ".webm": "audio/webm",
    ".wav": "audio/wav",
    ".mp3": "audio/mp3",
    ".m4a": "audio/m4a",
    ".ogg": "audio/ogg",
}


@dataclass
class TranscriptionResult:
    """Transcribed text for one recording."""

    audio_path: str
    text: str
    duration: float = 0.0  # Wall-clock seconds spent transcribing
    language: str = "en"
    provider: str = ""
    model: str = ""
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "audio_path": self.audio_path,
            "text": self.text,
            "duration": self.duration,
            "language": self.language,
            "provider": self.provider,
            "model": self.model,
            "timestamp": self.timestamp.isoformat(),
        }


def guess_mime_type(audio_path: Path) -> str:
    """Guess an audio file's mime type from its extension."""
    suffix = audio_path.suffix.lower()
    if suffix in _AUDIO_MIME_TYPES:
        return _AUDIO_MIME_TYPES[suffix]
    return mimetypes.guess_type(audio_path.name)[0] or "application/octet-stream"


def validate_audio_file(
    audio_path: Path,
    allowed_types: list[str],
    max_size_mb: float,
    mime_type: str | None = None,
) -> str:
    """Check an audio file before sending it for transcription.

    Any "audio/webm" type with codec parameters is accepted.

    Args:
        audio_path: File to check
        allowed_types: Accepted mime types
        max_size_mb: Largest accepted file size in megabytes
        mime_type: Declared mime type (guessed from extension if None)

    Returns:
        The mime type used for the check

    Raises:
        ResourceError: If the file does not exist
        ValidationError: If the type is unsupported or the file too large
    """
    if not audio_path.exists():
        raise ResourceError(f"Audio file not found: {audio_path}")

    mime_type = mime_type or guess_mime_type(audio_path)
    if mime_type not in allowed_types and not mime_type.startswith("audio/webm"):
        raise ValidationError(
            f"Unsupported file type: {mime_type}. "
            f"Supported types: {', '.join(allowed_types)}"
        )

    size_mb = audio_path.stat().st_size / (1024 * 1024)
    if size_mb > max_size_mb:
        raise ValidationError(
            f"File too large: {size_mb:.1f}MB. Maximum size: {max_size_mb:g}MB"
        )

    return mime_type


class TranscriptionProvider(ABC):
    """Abstract base class for speech-to-text providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is configured and usable."""
        pass

    @abstractmethod
    def transcribe(
        self,
        audio_path: Path | str,
        prompt: str | None = None,
        mime_type: str | None = None,
    ) -> TranscriptionResult:
        """Transcribe an audio file.

        Args:
            audio_path: Path to the recording
            prompt: Optional prompt to condition the transcription
            mime_type: Declared mime type of the recording

        Returns:
            TranscriptionResult with the transcribed text
        """
        pass
