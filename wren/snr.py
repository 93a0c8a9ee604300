"""Signal-to-noise ratio estimation.

Signal power is the mean square of every sample in the buffer. Noise power is
the mean square of a sub-population selected by one of two strategies:

- sample mode (default): every individual sample with ``|s| <= T``
- segment mode: every sample of a frame in which all channels are ``<= T``

``T = int(noise_threshold * peak)``. SNR is ``10 * log10(signal / noise)``.
"""

from __future__ import annotations

import math

import numpy as np

from wren._audio_constants import (
    DEFAULT_BIT_DEPTH,
    DEFAULT_NOISE_THRESHOLD,
    MAX_SNR_DB,
    NOISE_FLOOR_POWER,
)
from wren._types import SnrMeasurement
from wren.exceptions import InvalidRequestError
from wren.silence import amplitude_threshold, silent_frame_mask

__all__ = ["estimate_snr", "noise_population"]


def _mean_square(values: np.ndarray) -> float:
    # float64 accumulation; int16 squares overflow in place.
    as_float = values.astype(np.float64)
    return float(np.dot(as_float, as_float) / len(as_float))


def noise_population(
    samples: np.ndarray,
    channels: int,
    threshold_value: int,
    *,
    use_silent_segments: bool = False,
) -> np.ndarray:
    """Select the samples treated as noise.

    Args:
        samples: Interleaved signed integer samples (whole frames).
        channels: Channels per frame.
        threshold_value: Integer amplitude at or below which a sample is quiet.
        use_silent_segments: Group by frame instead of judging samples alone.

    Returns:
        The selected samples, in buffer order.
    """
    if use_silent_segments:
        silent = silent_frame_mask(samples, channels, threshold_value)
        return samples[np.repeat(silent, channels)]
    return samples[np.abs(samples.astype(np.int64, copy=False)) <= threshold_value]


def estimate_snr(
    samples: np.ndarray,
    channels: int,
    noise_threshold: float | None = DEFAULT_NOISE_THRESHOLD,
    use_silent_segments: bool = False,
    *,
    bit_depth: int = DEFAULT_BIT_DEPTH,
) -> SnrMeasurement:
    """Compute SNR in dB plus signal/noise power and RMS.

    An empty noise population is assigned the one-LSB floor
    (``noise_power == noise_rms == 1.0``). A non-empty but all-zero noise
    population caps the SNR at 120 dB. An empty buffer returns all zeros.

    Args:
        samples: Interleaved signed integer samples.
        channels: Channels per frame (> 0).
        noise_threshold: Fraction of full scale in [0, 1]. Zero or None means
            the default (0.01).
        use_silent_segments: Strategy switch, see module docstring.
        bit_depth: Bit depth whose peak amplitude scales the threshold.
    """
    if channels <= 0:
        raise InvalidRequestError(f"channels must be positive, got {channels}")
    if len(samples) % channels != 0:
        raise InvalidRequestError(
            f"{len(samples)} samples is not a whole number of {channels}-channel frames"
        )
    if len(samples) == 0:
        return SnrMeasurement(
            snr=0.0, signal_power=0.0, noise_power=0.0, signal_rms=0.0, noise_rms=0.0
        )

    threshold_value = amplitude_threshold(noise_threshold or DEFAULT_NOISE_THRESHOLD, bit_depth)

    signal_power = _mean_square(samples)
    signal_rms = math.sqrt(signal_power) if signal_power > 0 else 0.0

    noise = noise_population(
        samples, channels, threshold_value, use_silent_segments=use_silent_segments
    )
    if len(noise) > 0:
        noise_power = _mean_square(noise)
        noise_rms = math.sqrt(noise_power) if noise_power > 0 else 0.0
    else:
        noise_power = NOISE_FLOOR_POWER
        noise_rms = NOISE_FLOOR_POWER

    if signal_power > 0 and noise_power > 0:
        snr = 10.0 * math.log10(signal_power / noise_power)
    elif signal_power > 0:
        snr = MAX_SNR_DB
    else:
        snr = 0.0

    return SnrMeasurement(
        snr=snr,
        signal_power=signal_power,
        noise_power=noise_power,
        signal_rms=signal_rms,
        noise_rms=noise_rms,
    )
