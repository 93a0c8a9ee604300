"""Typed exceptions for Wren.

Hierarchy:
    WrenError (base)
    +-- ConfigError
    +-- InvalidRequestError
    +-- AudioError
    |   +-- AudioInputError   (file missing or unreadable)
    |   +-- AudioFormatError  (container fails validity check or decode)
    |   +-- AudioEncodeError  (trimmed buffer could not be serialized)
    |   +-- AudioIOError      (seek/read/write failures, including hashing)
    +-- StorageError
        +-- AssetNotFoundError

Nothing here is retried internally. Retry policy belongs to the caller.
"""

from __future__ import annotations


class WrenError(Exception):
    """Base for all Wren exceptions."""


# --- Configuration ---


class ConfigError(WrenError):
    """Runtime configuration error."""


# --- Request ---


class InvalidRequestError(WrenError):
    """Invalid operation parameter (threshold out of range, bad channel count)."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)


# --- Audio ---


class AudioError(WrenError):
    """Audio processing error."""


class AudioInputError(AudioError):
    """Source audio file is missing or cannot be opened."""

    FILE_NOT_FOUND = "file not found"
    NOT_A_REGULAR_FILE = "not a regular file"
    PERMISSION_DENIED = "permission denied"

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read audio file '{path}': {reason}")

    @classmethod
    def from_os_error(cls, path: str, err: OSError) -> AudioInputError:
        """Map an ``open()`` failure onto the standard reasons."""
        if isinstance(err, (FileNotFoundError, NotADirectoryError)):
            reason = cls.FILE_NOT_FOUND
        elif isinstance(err, IsADirectoryError):
            reason = cls.NOT_A_REGULAR_FILE
        elif isinstance(err, PermissionError):
            reason = cls.PERMISSION_DENIED
        else:
            reason = err.strerror or str(err)
        return cls(path, reason)


class AudioFormatError(AudioError):
    """Unsupported or invalid audio format."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Invalid audio format: {detail}")


class AudioEncodeError(AudioError):
    """Failed to encode a sample buffer back into its container format."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to encode audio to '{path}': {reason}")


class AudioIOError(AudioError):
    """Seek, read or write failure on an audio file or byte stream."""

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"I/O error during {operation}: {reason}")


# --- Storage ---


class StorageError(WrenError):
    """Asset/feature persistence error."""


class AssetNotFoundError(StorageError):
    """Asset not found in the store."""

    def __init__(self, asset_id: str) -> None:
        self.asset_id = asset_id
        super().__init__(f"Asset '{asset_id}' not found")
