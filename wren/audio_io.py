"""Audio container decoding and encoding.

Converts between integer-PCM container files (WAV, FLAC, and anything else
libsndfile reads) and interleaved native-scale integer ``SampleBuffer``s.
Trimmed output is written back with the source's container format and
subtype so sample rate, channel count and bit depth are preserved.
"""

from __future__ import annotations

import os
import wave
from dataclasses import dataclass

import numpy as np
import soundfile as sf

from wren._audio_constants import PCM_SUBTYPE_BIT_DEPTHS
from wren._types import AudioMetadata, SampleBuffer
from wren.exceptions import AudioEncodeError, AudioFormatError, AudioInputError
from wren.logging import get_logger

logger = get_logger("audio_io")

_SUBTYPE_BY_BIT_DEPTH: dict[int, str] = {8: "PCM_U8", 16: "PCM_16", 24: "PCM_24", 32: "PCM_32"}


@dataclass(frozen=True, slots=True)
class AudioContainer:
    """Container format and PCM subtype of a file, as libsndfile names them."""

    format: str
    subtype: str

    @property
    def bit_depth(self) -> int:
        return PCM_SUBTYPE_BIT_DEPTHS[self.subtype]


def _check_readable(path: str) -> None:
    if not os.path.exists(path):
        raise AudioInputError(path, AudioInputError.FILE_NOT_FOUND)
    if not os.path.isfile(path):
        raise AudioInputError(path, AudioInputError.NOT_A_REGULAR_FILE)
    if not os.access(path, os.R_OK):
        raise AudioInputError(path, AudioInputError.PERMISSION_DENIED)


def probe_container(path: str | os.PathLike[str]) -> AudioContainer:
    """Return the container format and integer PCM subtype of ``path``.

    Raises:
        AudioInputError: If the file is missing or unreadable.
        AudioFormatError: If the file is not integer PCM in a known container.
    """
    path = os.fspath(path)
    _check_readable(path)
    try:
        info = sf.info(path)
    except sf.SoundFileError:
        # Plain PCM WAV that libsndfile refuses can still be read via stdlib wave.
        bit_depth = _probe_wav_stdlib(path)
        return AudioContainer(format="WAV", subtype=_SUBTYPE_BY_BIT_DEPTH[bit_depth])

    if info.subtype not in PCM_SUBTYPE_BIT_DEPTHS:
        raise AudioFormatError(f"'{path}' uses subtype {info.subtype}, expected integer PCM")
    return AudioContainer(format=info.format, subtype=info.subtype)


def read_audio(path: str | os.PathLike[str]) -> SampleBuffer:
    """Decode an integer PCM file into an interleaved native-scale buffer.

    Raises:
        AudioInputError: If the file is missing or unreadable.
        AudioFormatError: If the container is invalid or not integer PCM.
    """
    path = os.fspath(path)
    container = probe_container(path)
    bit_depth = container.bit_depth

    try:
        data, sample_rate = sf.read(path, dtype="int32", always_2d=True)
    except sf.SoundFileError:
        buffer = _decode_wav_stdlib(path)
    else:
        # libsndfile scales every integer subtype to the full int32 range.
        native = data >> (32 - bit_depth)
        buffer = SampleBuffer(
            samples=native.reshape(-1),
            sample_rate=int(sample_rate),
            channels=int(data.shape[1]),
            bit_depth=bit_depth,
        )

    logger.debug(
        "audio_decoded",
        path=path,
        frames=buffer.frame_count,
        sample_rate=buffer.sample_rate,
        channels=buffer.channels,
        bit_depth=buffer.bit_depth,
        duration_s=round(buffer.duration_s, 3),
    )
    return buffer


def read_audio_metadata(path: str | os.PathLike[str]) -> AudioMetadata:
    """Decode ``path`` fully and report its metadata."""
    buffer = read_audio(path)
    return AudioMetadata(
        sample_rate=buffer.sample_rate,
        channels=buffer.channels,
        duration_s=buffer.duration_s,
        bit_depth=buffer.bit_depth,
    )


def write_audio(
    path: str | os.PathLike[str],
    buffer: SampleBuffer,
    container: AudioContainer,
) -> None:
    """Encode ``buffer`` to ``path`` in ``container``'s format and subtype.

    Raises:
        AudioEncodeError: If the buffer cannot be serialized or written.
    """
    path = os.fspath(path)
    if buffer.bit_depth != container.bit_depth:
        raise AudioEncodeError(
            path,
            f"buffer is {buffer.bit_depth}-bit but container subtype is {container.subtype}",
        )

    frames = buffer.samples.astype(np.int32).reshape(-1, buffer.channels)
    scaled = frames << (32 - buffer.bit_depth)
    try:
        sf.write(
            path,
            scaled,
            buffer.sample_rate,
            subtype=container.subtype,
            format=container.format,
        )
    except (sf.SoundFileError, OSError) as err:
        raise AudioEncodeError(path, str(err)) from err

    logger.debug(
        "audio_encoded",
        path=path,
        frames=buffer.frame_count,
        format=container.format,
        subtype=container.subtype,
    )


def _probe_wav_stdlib(path: str) -> int:
    try:
        with wave.open(path, "rb") as wf:
            sampwidth = wf.getsampwidth()
    except (wave.Error, EOFError) as err:
        raise AudioFormatError(f"'{path}' is not a valid audio file: {err}") from err
    if sampwidth not in (1, 2, 3, 4):
        raise AudioFormatError(f"Sample width {sampwidth} bytes not supported")
    return sampwidth * 8


def _decode_wav_stdlib(path: str) -> SampleBuffer:
    """Decode WAV PCM using wave stdlib as fallback.

    Raises:
        AudioFormatError: If the WAV is invalid or uses an unsupported width.
    """
    try:
        with wave.open(path, "rb") as wf:
            n_channels = wf.getnchannels()
            sampwidth = wf.getsampwidth()
            sample_rate = wf.getframerate()
            raw_data = wf.readframes(wf.getnframes())
    except (wave.Error, EOFError) as err:
        raise AudioFormatError(f"Invalid WAV file '{path}': {err}") from err

    if sampwidth == 1:
        # 8-bit WAV is unsigned, centered on 128.
        samples = np.frombuffer(raw_data, dtype=np.uint8).astype(np.int32) - 128
    elif sampwidth == 2:
        samples = np.frombuffer(raw_data, dtype="<i2").astype(np.int32)
    elif sampwidth == 3:
        triplets = np.frombuffer(raw_data, dtype=np.uint8).reshape(-1, 3).astype(np.int32)
        samples = triplets[:, 0] | (triplets[:, 1] << 8) | (triplets[:, 2] << 16)
        samples = np.where(samples >= 1 << 23, samples - (1 << 24), samples)
    elif sampwidth == 4:
        samples = np.frombuffer(raw_data, dtype="<i4").astype(np.int32)
    else:
        raise AudioFormatError(f"Sample width {sampwidth} bytes not supported")

    return SampleBuffer(
        samples=samples,
        sample_rate=sample_rate,
        channels=n_channels,
        bit_depth=sampwidth * 8,
    )
