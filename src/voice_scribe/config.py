"""Configuration loading and management for voice-scribe.

Settings live in a single JSON file, by default ~/.voice-scribe/config.json.
Secrets (OPENAI_API_KEY) come from the environment, not this file.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, Field

from voice_scribe.errors import ValidationError
from voice_scribe.storage import atomic_write_json


class GrammarSettings(BaseModel):
    """Grammar-correction stage settings."""

    enabled: bool = True
    model: str = "gpt-4-1106-preview"
    # Custom system prompt; None uses the built-in default
    prompt: str | None = None
    timeout_seconds: float = 30.0
    temperature: float = 0.0
    # Texts shorter than this (after strip) skip correction entirely
    min_text_length: int = 10


class TranscriptionSettings(BaseModel):
    """Speech-to-text stage settings."""

    model: str = "whisper-1"
    language: str = "en"
    temperature: float = 0.2
    timeout_seconds: float = 45.0
    max_file_size_mb: float = 4.5
    allowed_mime_types: list[str] = Field(default_factory=lambda: [
        "audio/webm",
        "audio/wav",
        "audio/mp3",
        "audio/m4a",
        "audio/ogg",
    ])


class MatchingSettings(BaseModel):
    """Personal vocabulary matching settings."""

    fuzzy_enabled: bool = True
    # Maximum normalized edit distance for a fuzzy match
    threshold: float = 0.2
    min_key_length: int = 2
    # Maximum length difference as a fraction of the longer word
    max_length_ratio: float = 0.2
    # Click-to-suggest search
    suggestion_threshold: float = 0.3
    suggestion_limit: int = 5


class AppConfig(BaseModel):
    """Top-level application configuration."""

    grammar: GrammarSettings = Field(default_factory=GrammarSettings)
    transcription: TranscriptionSettings = Field(default_factory=TranscriptionSettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    # Where per-user data is stored; None uses ~/.voice-scribe
    data_dir: str | None = None

    def get_data_dir(self) -> Path:
        """Resolve the directory holding user data."""
        if self.data_dir:
            return Path(self.data_dir).expanduser()
        return get_config_root()


def get_config_root() -> Path:
    """Get the per-machine voice-scribe directory."""
    return Path.home() / ".voice-scribe"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_config_root() / "config.json"


def load_config(path: Path | str | None = None) -> AppConfig:
    """Load configuration from a JSON file.

    A missing file gives the default configuration.

    Args:
        path: Config file path (defaults to ~/.voice-scribe/config.json)

    Returns:
        AppConfig object

    Raises:
        ValidationError: If the file is not valid JSON or has bad values
    """
    config_path = Path(path) if path else get_config_path()
    if not config_path.exists():
        return AppConfig()

    try:
        with open(config_path, encoding="utf-8") as f:
            data = json.load(f)
        return AppConfig(**data)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in config {config_path}: {e}") from e
    except ValueError as e:
        raise ValidationError(f"Invalid config {config_path}: {e}") from e


def save_config(config: AppConfig, path: Path | str | None = None) -> Path:
    """Save configuration with an atomic write.

    Args:
        config: Configuration to save
        path: Config file path (defaults to ~/.voice-scribe/config.json)

    Returns:
        Path to the saved config file
    """
    config_path = Path(path) if path else get_config_path()
    atomic_write_json(config_path, config.model_dump())
    return config_path
