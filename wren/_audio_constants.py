"""Centralized audio format constants for the Wren engine.

Single source of truth for PCM amplitude scales and the default thresholds
shared by silence detection, SNR estimation, settings and the CLI.
"""

from __future__ import annotations

# --- PCM formats ---
# Bit depth assumed when a caller does not state one.
DEFAULT_BIT_DEPTH: int = 16

# Integer PCM bit depths supported by audio_io, keyed by libsndfile subtype.
PCM_SUBTYPE_BIT_DEPTHS: dict[str, int] = {
    "PCM_U8": 8,
    "PCM_S8": 8,
    "PCM_16": 16,
    "PCM_24": 24,
    "PCM_32": 32,
}

# --- Silence trimming defaults ---
# Fraction of peak amplitude at or below which a sample counts as silent.
DEFAULT_SILENCE_THRESHOLD: float = 0.01
# Seconds of consecutive trailing silence (approximate scan mode only).
DEFAULT_MIN_SILENCE_DURATION_S: float = 0.1

# --- SNR defaults ---
DEFAULT_NOISE_THRESHOLD: float = 0.01
# Noise power/RMS reported when no sample qualifies as noise (1 LSB floor).
NOISE_FLOOR_POWER: float = 1.0
# SNR reported when the noise population is present but all-zero.
MAX_SNR_DB: float = 120.0

# --- Content addressing ---
HASH_ALGORITHM: str = "sha256"
HASH_CHUNK_SIZE_BYTES: int = 1024 * 1024


def peak_amplitude(bit_depth: int = DEFAULT_BIT_DEPTH) -> int:
    """Largest positive sample value for signed PCM of ``bit_depth`` bits."""
    if bit_depth < 2:
        msg = f"bit_depth must be >= 2, got {bit_depth}"
        raise ValueError(msg)
    return 2 ** (bit_depth - 1) - 1
