"""OpenAI Whisper API transcription provider."""

from __future__ import annotations

import os
import time
from datetime import datetime
from pathlib import Path
from typing import Any

from openai import APITimeoutError, OpenAI

from voice_scribe.config import TranscriptionSettings
from voice_scribe.errors import (
    ConfigurationError,
    TimeoutExceededError,
    wrap_external_error,
)
from voice_scribe.logging import get_logger, log_operation_complete, log_operation_start
from voice_scribe.transcription.base import (
    TranscriptionProvider,
    TranscriptionResult,
    validate_audio_file,
)

logger = get_logger(__name__)


class WhisperAPIProvider(TranscriptionProvider):
    """Speech-to-text through the hosted Whisper model.

    The recording is uploaded as-is; the API key comes from the
    constructor or OPENAI_API_KEY.
    """

    def __init__(
        self,
        settings: TranscriptionSettings | None = None,
        api_key: str | None = None,
        client: Any = None,
    ):
        """Initialize provider.

        Args:
            settings: Model, language, timeout and upload limits
            api_key: OpenAI API key; OPENAI_API_KEY is used when omitted
            client: Pre-built OpenAI client (mainly for tests)
        """
        self.settings = settings or TranscriptionSettings()
        self._api_key = api_key or os.environ.get("OPENAI_API_KEY")
        self._client = client

    @property
    def name(self) -> str:
        return "whisper_api"

    def is_available(self) -> bool:
        return self._client is not None or bool(self._api_key)

    def _get_client(self) -> Any:
        """Return the client, creating it on first use.

        Raises:
            ConfigurationError: If API key is not configured
        """
        if self._client is not None:
            return self._client

        if not self._api_key:
            raise ConfigurationError(
                "Transcription needs an OpenAI API key. Set OPENAI_API_KEY or pass api_key."
            )

        self._client = OpenAI(
            api_key=self._api_key,
            timeout=self.settings.timeout_seconds,
            max_retries=0,
        )
        return self._client

    def transcribe(
        self,
        audio_path: Path | str,
        prompt: str | None = None,
        mime_type: str | None = None,
    ) -> TranscriptionResult:
        """Transcribe an audio file using the Whisper API.

        Raises:
            ResourceError: If the audio file doesn't exist
            ValidationError: If the file type or size is not accepted
            ConfigurationError: If API key not configured
            TimeoutExceededError: If the API does not answer in time
            VoiceScribeError: For other API failures
        """
        audio_path = Path(audio_path)
        validate_audio_file(
            audio_path,
            allowed_types=self.settings.allowed_mime_types,
            max_size_mb=self.settings.max_file_size_mb,
            mime_type=mime_type,
        )
        client = self._get_client()

        log_operation_start(
            logger,
            "transcription",
            file=audio_path.name,
            size_kb=round(audio_path.stat().st_size / 1024),
        )
        start = time.monotonic()
        text = self._call_api(client, audio_path, prompt)
        duration = time.monotonic() - start
        log_operation_complete(logger, "transcription", duration=duration)

        return TranscriptionResult(
            audio_path=str(audio_path),
            text=text,
            duration=duration,
            language=self.settings.language,
            provider=self.name,
            model=self.settings.model,
            timestamp=datetime.now(),
        )

    def _call_api(self, client: Any, audio_path: Path, prompt: str | None) -> str:
        params: dict[str, Any] = {
            "model": self.settings.model,
            "language": self.settings.language,
            "response_format": "text",
            "temperature": self.settings.temperature,
            "timeout": self.settings.timeout_seconds,
        }
        if prompt:
            params["prompt"] = prompt

        try:
            with open(audio_path, "rb") as audio_file:
                response = client.audio.transcriptions.create(file=audio_file, **params)
        except APITimeoutError as e:
            raise TimeoutExceededError(
                f"Transcription timed out after {self.settings.timeout_seconds:g} seconds",
                timeout=self.settings.timeout_seconds,
            ) from e
        except Exception as e:
            raise wrap_external_error(e, "openai", "transcription") from e

        # response_format="text" returns a plain string
        return str(response).strip()
