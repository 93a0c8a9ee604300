"""Shared test helpers for building PCM buffers and audio files.

Usage:
    from tests.helpers import (
        SAMPLE_RATE,
        make_padded_tone,
        make_sine,
        write_audio_file,
    )
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import soundfile as sf

SAMPLE_RATE = 1000


def make_padded_tone(
    lead_frames: int,
    body_frames: int,
    tail_frames: int,
    *,
    amplitude: int = 20000,
    channels: int = 1,
) -> np.ndarray:
    """Interleaved int16 buffer: zeros, constant ``amplitude``, zeros."""
    frames = np.concatenate(
        [
            np.zeros(lead_frames, dtype=np.int16),
            np.full(body_frames, amplitude, dtype=np.int16),
            np.zeros(tail_frames, dtype=np.int16),
        ]
    )
    return np.repeat(frames, channels)


def make_sine(
    n_frames: int,
    *,
    amplitude: float = 10000.0,
    frequency: float = 50.0,
    sample_rate: int = SAMPLE_RATE,
) -> np.ndarray:
    """Mono int16 sine wave."""
    t = np.arange(n_frames) / sample_rate
    return (amplitude * np.sin(2 * np.pi * frequency * t)).astype(np.int16)


def write_audio_file(
    path: Path,
    samples: np.ndarray,
    *,
    sample_rate: int = SAMPLE_RATE,
    channels: int = 1,
    subtype: str = "PCM_16",
) -> Path:
    """Write interleaved int16 samples to ``path`` (format from the suffix)."""
    frames = samples.astype(np.int16).reshape(-1, channels)
    sf.write(str(path), frames, sample_rate, subtype=subtype)
    return path
