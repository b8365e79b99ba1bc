"""Storage layer for voice-scribe.

Provides atomic JSON file writes and the per-user data store holding each
user's grammar prompt, word corrections and discarded fuzzy matches.
"""

from __future__ import annotations

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Mapping

from voice_scribe.errors import ErrorCategory, ValidationError, VoiceScribeError
from voice_scribe.logging import get_logger

logger = get_logger(__name__)

_UID_PATTERN = re.compile(r"^[A-Za-z0-9_.@-]+$")


class StorageError(VoiceScribeError):
    """Base exception for storage operations."""

    category = ErrorCategory.RESOURCE


def atomic_write(path: Path, data: str, encoding: str = "utf-8") -> None:
    """Write data to a file atomically.

    Writes to a temporary file in the same directory, then renames to target.

    Args:
        path: Target file path
        data: String data to write
        encoding: File encoding (default utf-8)

    Raises:
        StorageError: If the write operation fails
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    temp_path = None
    try:
        fd, temp_path = tempfile.mkstemp(
            suffix=".tmp",
            prefix=path.stem + "_",
            dir=path.parent,
        )
        os.write(fd, data.encode(encoding))
        os.fsync(fd)
        os.close(fd)
        fd = None

        os.replace(temp_path, path)
        temp_path = None

    except OSError as e:
        raise StorageError(f"Failed to write {path}: {e}") from e
    finally:
        if fd is not None:
            try:
                os.close(fd)
            except OSError:
                pass
        if temp_path is not None:
            try:
                os.unlink(temp_path)
            except OSError:
                pass


def atomic_write_json(path: Path, data: dict | list, indent: int = 2) -> None:
    """Write JSON data to a file atomically."""
    json_str = json.dumps(data, indent=indent, ensure_ascii=False, default=str)
    atomic_write(path, json_str)


def read_json(path: Path) -> dict | list:
    """Read JSON data from a file.

    Raises:
        StorageError: If the file is missing or not valid JSON
    """
    if not path.exists():
        raise StorageError(f"File not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise StorageError(f"Invalid JSON in {path}: {e}") from e


def _validate_mapping(name: str, value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        raise ValidationError(f"{name} must be an object with key:value pairs")
    for key, item in value.items():
        if not isinstance(key, str) or not isinstance(item, str):
            raise ValidationError(
                f"{name} must map strings to strings",
                context={"key": repr(key)},
            )
    return dict(value)


class UserDataStore:
    """File-based per-user data.

    Each user has one JSON document at <root>/users/<uid>.json:

        {
          "prompt": "...",
          "transformations": {"wrong": "right"},
          "discarded_fuzzy": {"original": "matched key"}
        }

    Missing users and missing keys read as empty.
    """

    def __init__(self, root: Path | str):
        """Initialize store.

        Args:
            root: Directory holding the users/ folder
        """
        self.root = Path(root)
        self.users_dir = self.root / "users"

    def _user_path(self, uid: str) -> Path:
        if not uid or not _UID_PATTERN.match(uid) or uid in (".", ".."):
            raise ValidationError("User ID is required and may not contain path characters")
        return self.users_dir / f"{uid}.json"

    def _load(self, uid: str) -> dict[str, Any]:
        path = self._user_path(uid)
        if not path.exists():
            return {}
        data = read_json(path)
        if not isinstance(data, dict):
            raise StorageError(f"Corrupt user document: {path}")
        return data

    def _save(self, uid: str, data: dict[str, Any]) -> None:
        atomic_write_json(self._user_path(uid), data)

    def exists(self, uid: str) -> bool:
        """Check whether a user document exists."""
        return self._user_path(uid).exists()

    def list_users(self) -> list[str]:
        """List user ids with stored data."""
        if not self.users_dir.exists():
            return []
        return sorted(p.stem for p in self.users_dir.glob("*.json"))

    # Prompt

    def get_prompt(self, uid: str) -> str | None:
        """Get the user's grammar-correction prompt, if set."""
        return self._load(uid).get("prompt") or None

    def set_prompt(self, uid: str, prompt: str | None) -> None:
        """Set or clear (with None/empty) the user's prompt."""
        data = self._load(uid)
        if prompt:
            data["prompt"] = prompt
        else:
            data.pop("prompt", None)
        self._save(uid, data)

    # Word corrections

    def get_transformations(self, uid: str) -> dict[str, str]:
        """Get the user's word correction dictionary."""
        return dict(self._load(uid).get("transformations", {}))

    def set_transformations(self, uid: str, transformations: Mapping[str, str]) -> None:
        """Replace the user's word correction dictionary.

        Raises:
            ValidationError: If transformations is not a string mapping
        """
        mapping = _validate_mapping("Transformations", transformations)
        data = self._load(uid)
        data["transformations"] = mapping
        self._save(uid, data)
        logger.debug("Saved transformations", extra={"uid": uid, "count": len(mapping)})

    def add_transformation(self, uid: str, wrong: str, right: str) -> None:
        """Add or replace a single word correction.

        Existing keys differing only in case are replaced.
        """
        if not wrong.strip() or not right.strip():
            raise ValidationError("Both the word and its correction are required")

        transformations = {
            k: v for k, v in self.get_transformations(uid).items()
            if k.lower() != wrong.lower()
        }
        transformations[wrong] = right
        self.set_transformations(uid, transformations)

    def remove_transformation(self, uid: str, wrong: str) -> bool:
        """Remove a word correction, ignoring case.

        Returns:
            True if an entry was removed
        """
        transformations = self.get_transformations(uid)
        remaining = {k: v for k, v in transformations.items() if k.lower() != wrong.lower()}
        if len(remaining) == len(transformations):
            return False
        self.set_transformations(uid, remaining)
        return True

    # Discarded fuzzy matches

    def get_discarded_fuzzy(self, uid: str) -> dict[str, str]:
        """Get the user's discarded fuzzy matches (original -> matched key)."""
        return dict(self._load(uid).get("discarded_fuzzy", {}))

    def add_discarded_fuzzy(self, uid: str, discarded: Mapping[str, str]) -> dict[str, str]:
        """Merge new entries into the user's discard list.

        Keys are stored lowercased. A later entry for the same original
        word replaces the earlier one.

        Returns:
            The updated discard list

        Raises:
            ValidationError: If discarded is not a string mapping
        """
        entries = _validate_mapping("Discarded fuzzy data", discarded)
        data = self._load(uid)
        merged = dict(data.get("discarded_fuzzy", {}))
        for original, matched_key in entries.items():
            merged[original.lower()] = matched_key.lower()
        data["discarded_fuzzy"] = merged
        self._save(uid, data)
        logger.info("Discarded fuzzy match", extra={"uid": uid, "entries": len(entries)})
        return merged
