"""Silence boundary detection.

Finds the ``[start, end)`` frame range that bounds the non-silent region of
an interleaved PCM buffer. A frame is silent when every channel's absolute
amplitude is at or below the integer threshold ``int(threshold * peak)``.

Pure functions over numpy arrays; no I/O, no state.
"""

from __future__ import annotations

import numpy as np

from wren._audio_constants import (
    DEFAULT_BIT_DEPTH,
    DEFAULT_MIN_SILENCE_DURATION_S,
    DEFAULT_SILENCE_THRESHOLD,
    peak_amplitude,
)
from wren._types import TrailingSilenceMode
from wren.exceptions import InvalidRequestError

__all__ = [
    "amplitude_threshold",
    "find_non_silent_range",
    "min_silence_frames",
    "silent_frame_mask",
]


def amplitude_threshold(threshold: float, bit_depth: int = DEFAULT_BIT_DEPTH) -> int:
    """Convert a [0, 1] fraction of full scale to an integer amplitude.

    Truncates toward zero: 0.01 at 16 bits gives 327.
    """
    if not 0.0 <= threshold <= 1.0:
        raise InvalidRequestError(f"threshold must be in [0, 1], got {threshold}")
    return int(threshold * peak_amplitude(bit_depth))


def min_silence_frames(sample_rate: int, min_silence_duration: float) -> int:
    """Number of frames spanning ``min_silence_duration`` seconds."""
    return int(sample_rate * min_silence_duration)


def silent_frame_mask(samples: np.ndarray, channels: int, threshold_value: int) -> np.ndarray:
    """Boolean mask, one entry per frame, True where all channels are ``<= threshold_value``.

    ``samples`` must hold a whole number of frames.
    """
    # int64 so that abs(-32768) does not wrap for int16 input.
    frames = np.abs(samples.astype(np.int64, copy=False)).reshape(-1, channels)
    return np.all(frames <= threshold_value, axis=1)


def _validate(channels: int, sample_rate: int, n_samples: int) -> None:
    if channels <= 0:
        raise InvalidRequestError(f"channels must be positive, got {channels}")
    if sample_rate <= 0:
        raise InvalidRequestError(f"sample_rate must be positive, got {sample_rate}")
    if n_samples % channels != 0:
        raise InvalidRequestError(
            f"{n_samples} samples is not a whole number of {channels}-channel frames"
        )


def _trailing_end(
    silent: np.ndarray,
    start: int,
    min_frames: int,
    mode: TrailingSilenceMode,
) -> int:
    n_frames = len(silent)
    # Frames in backward scan order, last frame first, stopping at ``start``.
    tail = silent[start:][::-1]
    loud = np.flatnonzero(~tail)

    if mode is TrailingSilenceMode.EXACT:
        if loud.size == 0:
            return n_frames
        return n_frames - int(loud[0])

    # Silent frames seen before the first non-silent one (or the whole tail).
    run = int(loud[0]) if loud.size else len(tail)
    # The count is checked after being incremented, so a 0 target behaves like 1.
    needed = max(min_frames, 1)
    if run >= needed:
        return n_frames - needed + 1
    if loud.size:
        return n_frames - run
    return n_frames


def find_non_silent_range(
    samples: np.ndarray,
    channels: int,
    sample_rate: int,
    silence_threshold: float | None = DEFAULT_SILENCE_THRESHOLD,
    min_silence_duration: float | None = DEFAULT_MIN_SILENCE_DURATION_S,
    *,
    bit_depth: int = DEFAULT_BIT_DEPTH,
    mode: TrailingSilenceMode = TrailingSilenceMode.EXACT,
) -> tuple[int, int]:
    """Locate the non-silent region of an interleaved sample buffer.

    Args:
        samples: Interleaved signed integer samples.
        channels: Channels per frame (> 0).
        sample_rate: Frames per second (> 0).
        silence_threshold: Fraction of full scale in [0, 1]. Zero or None
            means the default (0.01).
        min_silence_duration: Seconds of consecutive trailing silence that end
            the backward scan in APPROXIMATE mode. Zero or None means the
            default (0.1).
        bit_depth: Bit depth whose peak amplitude scales the threshold.
        mode: Backward scan policy, see ``TrailingSilenceMode``.

    Returns:
        ``(start_frame, end_frame)`` in frames. The full range
        ``(0, frame_count)`` means nothing to trim; an empty buffer gives
        ``(0, 0)``. Multiply by ``channels`` for sample offsets.
    """
    _validate(channels, sample_rate, len(samples))
    if len(samples) == 0:
        return 0, 0

    threshold_value = amplitude_threshold(silence_threshold or DEFAULT_SILENCE_THRESHOLD, bit_depth)
    min_frames = min_silence_frames(
        sample_rate, min_silence_duration or DEFAULT_MIN_SILENCE_DURATION_S
    )

    silent = silent_frame_mask(samples, channels, threshold_value)
    n_frames = len(silent)

    loud = np.flatnonzero(~silent)
    # All-silent input keeps start at 0 rather than producing an empty range.
    start = int(loud[0]) if loud.size else 0
    end = _trailing_end(silent, start, min_frames, mode)

    if end <= start:
        return 0, n_frames
    return start, end
