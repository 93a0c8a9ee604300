"""Core types for Wren.

This module defines enums, dataclasses, and type aliases used by all engine
components. Changes here affect the entire system.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np

from wren._audio_constants import DEFAULT_BIT_DEPTH, peak_amplitude
from wren.exceptions import AudioFormatError


class TrailingSilenceMode(Enum):
    """How the backward scan for the end of the non-silent region stops.

    - EXACT: trim to one past the last non-silent frame.
    - APPROXIMATE: stop at the first non-silent frame OR as soon as
      ``min_silence_duration`` seconds of consecutive silence have been seen,
      whichever comes first. Faster on long tails, but may keep up to
      ``min_silence_duration`` of trailing silence.

    APPROXIMATE reproduces the legacy early-exit trimmer boundary for boundary.
    """

    EXACT = "exact"
    APPROXIMATE = "approximate"


@dataclass(frozen=True, slots=True, eq=False)
class SampleBuffer:
    """Decoded PCM audio, channel-interleaved (``samples[i * channels + ch]``).

    ``samples`` holds native-scale signed integers: a 16-bit file spans
    [-32768, 32767], a 24-bit file [-8388608, 8388607], and so on.
    """

    samples: np.ndarray
    sample_rate: int
    channels: int
    bit_depth: int = DEFAULT_BIT_DEPTH

    def __post_init__(self) -> None:
        if self.sample_rate <= 0:
            raise AudioFormatError(f"sample_rate must be positive, got {self.sample_rate}")
        if self.channels <= 0:
            raise AudioFormatError(f"channels must be positive, got {self.channels}")
        if self.samples.ndim != 1:
            raise AudioFormatError("samples must be a flat interleaved array")
        if len(self.samples) % self.channels != 0:
            raise AudioFormatError(
                f"{len(self.samples)} samples is not a whole number of "
                f"{self.channels}-channel frames"
            )

    @property
    def frame_count(self) -> int:
        return len(self.samples) // self.channels

    @property
    def duration_s(self) -> float:
        return self.frame_count / self.sample_rate

    @property
    def peak_amplitude(self) -> int:
        return peak_amplitude(self.bit_depth)

    def slice_frames(self, start: int, end: int) -> SampleBuffer:
        """Return the frames ``[start, end)`` as a new buffer with the same format."""
        return SampleBuffer(
            samples=self.samples[start * self.channels : end * self.channels],
            sample_rate=self.sample_rate,
            channels=self.channels,
            bit_depth=self.bit_depth,
        )


@dataclass(frozen=True, slots=True)
class AudioMetadata:
    """Basic audio file metadata."""

    sample_rate: int
    channels: int
    duration_s: float
    bit_depth: int = DEFAULT_BIT_DEPTH


@dataclass(frozen=True, slots=True)
class WorkflowContext:
    """Identifies the workflow run on whose behalf an operation executes."""

    workflow_id: str
    workflow_run_id: str


@dataclass(frozen=True, slots=True)
class Asset:
    """Content-addressed identity record for an audio file.

    Two assets with equal ``content_hash`` represent byte-identical files.
    ``parent_asset_id`` links a derived asset (e.g. a trimmed file) to its source.
    """

    id: str
    workflow_id: str
    workflow_run_id: str
    file_path: str
    content_hash: str
    parent_asset_id: str | None = None
    created_at: float = field(default_factory=time.time)


@dataclass(frozen=True, slots=True)
class Feature:
    """Immutable record of one feature computation on an asset.

    Re-computation creates a new record; existing records are never updated.
    """

    id: str
    asset_id: str
    feature_type: str
    feature_data: dict[str, Any]
    computation_params: dict[str, Any] | None = None
    computed_at: float = field(default_factory=time.time)


@dataclass(frozen=True, slots=True)
class SnrMeasurement:
    """SNR in decibels plus the intermediate power/RMS figures."""

    snr: float
    signal_power: float
    noise_power: float
    signal_rms: float
    noise_rms: float


@dataclass(frozen=True, slots=True)
class TrimResult:
    """Outcome of a silence-trim attempt.

    ``output_path`` is set iff a new file was materialized, and
    ``new_asset_id`` iff ``was_trimmed and not no_op``.
    """

    content_hash: str
    was_trimmed: bool
    no_op: bool
    output_path: str | None = None
    new_asset_id: str | None = None


@dataclass(frozen=True, slots=True)
class IngestResult:
    """Asset registered for a raw audio file, with its decoded metadata."""

    asset: Asset
    metadata: AudioMetadata
