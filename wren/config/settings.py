"""Centralized configuration via pydantic-settings.

All ``WREN_*`` environment variables are read, validated, and exposed here.
Logging env vars (``WREN_LOG_FORMAT``, ``WREN_LOG_LEVEL``) are intentionally
excluded; they stay in ``wren.logging`` for bootstrap-safety.

Usage::

    from wren.config.settings import get_settings

    settings = get_settings()
    print(settings.trim.silence_threshold)  # float, validated
    print(settings.storage.data_path)       # Path, expanded

``.env`` files in the working directory are loaded automatically.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from wren._audio_constants import (
    DEFAULT_MIN_SILENCE_DURATION_S,
    DEFAULT_NOISE_THRESHOLD,
    DEFAULT_SILENCE_THRESHOLD,
    HASH_CHUNK_SIZE_BYTES,
)
from wren._types import TrailingSilenceMode
from wren.exceptions import ConfigError


class TrimSettings(BaseSettings):
    """Silence trimming defaults."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    silence_threshold: float = Field(
        default=DEFAULT_SILENCE_THRESHOLD,
        ge=0.0,
        le=1.0,
        validation_alias="WREN_TRIM_SILENCE_THRESHOLD",
    )
    min_silence_duration_s: float = Field(
        default=DEFAULT_MIN_SILENCE_DURATION_S,
        ge=0.0,
        le=60.0,
        validation_alias="WREN_TRIM_MIN_SILENCE_DURATION_S",
    )
    trailing_mode: str = Field(
        default=TrailingSilenceMode.EXACT.value,
        validation_alias="WREN_TRIM_TRAILING_MODE",
    )
    output_dir: str | None = Field(
        default=None,
        validation_alias="WREN_TRIM_OUTPUT_DIR",
    )

    @field_validator("trailing_mode")
    @classmethod
    def _validate_trailing_mode(cls, value: str) -> str:
        normalized = value.lower()
        valid = {m.value for m in TrailingSilenceMode}
        if normalized not in valid:
            msg = f"trailing_mode must be one of {sorted(valid)}, got {value!r}"
            raise ValueError(msg)
        return normalized

    @property
    def mode(self) -> TrailingSilenceMode:
        """The trailing scan policy as an enum."""
        return TrailingSilenceMode(self.trailing_mode)


class SNRSettings(BaseSettings):
    """SNR estimation defaults."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    noise_threshold: float = Field(
        default=DEFAULT_NOISE_THRESHOLD,
        ge=0.0,
        le=1.0,
        validation_alias="WREN_SNR_NOISE_THRESHOLD",
    )
    use_silent_segments: bool = Field(
        default=False,
        validation_alias="WREN_SNR_USE_SILENT_SEGMENTS",
    )


class StorageSettings(BaseSettings):
    """Record store and hashing settings."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    data_dir: str = Field(default="~/.wren", validation_alias="WREN_DATA_DIR")
    hash_chunk_size_bytes: int = Field(
        default=HASH_CHUNK_SIZE_BYTES,
        ge=4096,
        le=64 * 1024 * 1024,
        validation_alias="WREN_HASH_CHUNK_SIZE_BYTES",
    )

    @property
    def data_path(self) -> Path:
        """Expanded data directory as a Path object."""
        return Path(self.data_dir).expanduser()


class WorkflowSettings(BaseSettings):
    """Identifiers attached to records created outside a workflow engine."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    workflow_id: str = Field(default="wren-cli", min_length=1, validation_alias="WREN_WORKFLOW_ID")


class WrenSettings(BaseSettings):
    """Root settings, aggregating all subsystem settings.

    Loads ``.env`` from the current directory when present.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    trim: TrimSettings = Field(default_factory=TrimSettings)
    snr: SNRSettings = Field(default_factory=SNRSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    workflow: WorkflowSettings = Field(default_factory=WorkflowSettings)


@lru_cache(maxsize=1)
def get_settings() -> WrenSettings:
    """Return the singleton ``WrenSettings`` instance.

    The result is cached, so subsequent calls return the same object.
    Call ``get_settings.cache_clear()`` in tests to reset.

    Raises:
        ConfigError: If any ``WREN_*`` variable fails validation.
    """
    try:
        return WrenSettings()
    except ValidationError as err:
        raise ConfigError(f"Invalid configuration: {err}") from err
