"""Tests for wren.audio_io.

Validates integer PCM decoding at several bit depths, re-encoding into the
source container, and the input/format/encode error taxonomy.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
import soundfile as sf

from tests.helpers import SAMPLE_RATE, make_padded_tone, write_audio_file
from wren._types import SampleBuffer
from wren.audio_io import (
    AudioContainer,
    probe_container,
    read_audio,
    read_audio_metadata,
    write_audio,
)
from wren.exceptions import AudioEncodeError, AudioFormatError, AudioInputError


class TestReadAudio:
    def test_mono_16_bit_samples_are_native_scale(self, tmp_path: Path) -> None:
        # Arrange
        samples = np.array([0, 1, -1, 32767, -32768, 1234], dtype=np.int16)
        path = write_audio_file(tmp_path / "mono.wav", samples)

        # Act
        buffer = read_audio(path)

        # Assert
        assert buffer.samples.tolist() == samples.tolist()
        assert buffer.sample_rate == SAMPLE_RATE
        assert buffer.channels == 1
        assert buffer.bit_depth == 16

    def test_stereo_is_interleaved(self, tmp_path: Path) -> None:
        samples = np.array([1, -1, 2, -2, 3, -3], dtype=np.int16)
        path = write_audio_file(tmp_path / "stereo.wav", samples, channels=2)

        buffer = read_audio(path)

        assert buffer.channels == 2
        assert buffer.frame_count == 3
        assert buffer.samples.tolist() == [1, -1, 2, -2, 3, -3]

    def test_24_bit_flac(self, tmp_path: Path) -> None:
        # Arrange -- values outside the 16-bit range
        values = np.array([0, 100_000, -8_388_608, 8_388_607], dtype=np.int32)
        path = tmp_path / "deep.flac"
        sf.write(str(path), (values << 8).reshape(-1, 1), 8000, subtype="PCM_24")

        # Act
        buffer = read_audio(path)

        # Assert
        assert buffer.bit_depth == 24
        assert buffer.samples.tolist() == values.tolist()

    def test_missing_file_raises_input_error(self, tmp_path: Path) -> None:
        with pytest.raises(AudioInputError, match="file not found"):
            read_audio(tmp_path / "nope.wav")

    def test_directory_raises_input_error(self, tmp_path: Path) -> None:
        with pytest.raises(AudioInputError, match="not a regular file"):
            read_audio(tmp_path)

    def test_garbage_bytes_raise_format_error(self, tmp_path: Path) -> None:
        path = tmp_path / "noise.wav"
        path.write_bytes(b"definitely not a riff header" * 10)
        with pytest.raises(AudioFormatError):
            read_audio(path)

    def test_float_wav_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "float.wav"
        sf.write(str(path), np.zeros(16, dtype=np.float32), 8000, subtype="FLOAT")
        with pytest.raises(AudioFormatError, match="integer PCM"):
            read_audio(path)

    def test_metadata(self, padded_wav: Path) -> None:
        metadata = read_audio_metadata(padded_wav)
        assert metadata.sample_rate == SAMPLE_RATE
        assert metadata.channels == 1
        assert metadata.bit_depth == 16
        assert metadata.duration_s == pytest.approx(4.0)


class TestWriteAudio:
    def test_round_trip_preserves_container_and_samples(self, tmp_path: Path) -> None:
        # Arrange
        source = write_audio_file(
            tmp_path / "source.wav", make_padded_tone(5, 10, 5, channels=2), channels=2
        )
        buffer = read_audio(source)
        container = probe_container(source)

        # Act
        target = tmp_path / "copy.wav"
        write_audio(target, buffer.slice_frames(5, 15), container)

        # Assert
        info = sf.info(str(target))
        assert (info.format, info.subtype) == ("WAV", "PCM_16")
        assert info.channels == 2
        assert info.samplerate == SAMPLE_RATE
        assert read_audio(target).samples.tolist() == [20000] * 20

    def test_bit_depth_mismatch_raises_encode_error(self, tmp_path: Path) -> None:
        buffer = SampleBuffer(
            samples=np.zeros(4, dtype=np.int32), sample_rate=8000, channels=1, bit_depth=24
        )
        with pytest.raises(AudioEncodeError):
            write_audio(tmp_path / "x.wav", buffer, AudioContainer("WAV", "PCM_16"))

    def test_unwritable_target_raises_encode_error(self, tmp_path: Path) -> None:
        buffer = SampleBuffer(samples=np.zeros(4, dtype=np.int16), sample_rate=8000, channels=1)
        with pytest.raises(AudioEncodeError):
            write_audio(
                tmp_path / "missing-dir" / "x.wav", buffer, AudioContainer("WAV", "PCM_16")
            )


class TestSampleBuffer:
    def test_partial_frame_rejected(self) -> None:
        with pytest.raises(AudioFormatError):
            SampleBuffer(samples=np.zeros(3, dtype=np.int16), sample_rate=8000, channels=2)

    def test_non_positive_rate_rejected(self) -> None:
        with pytest.raises(AudioFormatError):
            SampleBuffer(samples=np.zeros(2, dtype=np.int16), sample_rate=0, channels=1)

    def test_slice_frames_uses_frame_units(self) -> None:
        buffer = SampleBuffer(samples=np.arange(8, dtype=np.int16), sample_rate=8000, channels=2)
        assert buffer.slice_frames(1, 3).samples.tolist() == [2, 3, 4, 5]
        assert buffer.peak_amplitude == 32767
