"""Silence trimming with content-addressed deduplication.

Decision flow for one source file:

1. Find the non-silent frame range. Full or empty range -> no-op, nothing
   is encoded and the source hash is reported.
2. Encode the trimmed range in the source's container format into a
   private temporary file beside the output location and hash it.
3. Same hash as the source -> no-op, the temporary file is deleted.
4. Different hash -> the file is moved to ``trimmed_<hash prefix><suffix>``
   and a new asset id is allocated.

Output names derive from the trimmed content itself, so concurrent trims of
different sources never collide and concurrent trims producing identical
content converge on one file.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
import uuid
from collections.abc import Callable
from pathlib import Path

from wren._audio_constants import (
    DEFAULT_MIN_SILENCE_DURATION_S,
    DEFAULT_SILENCE_THRESHOLD,
    HASH_CHUNK_SIZE_BYTES,
)
from wren._types import SampleBuffer, TrailingSilenceMode, TrimResult
from wren.audio_io import AudioContainer, probe_container, read_audio, write_audio
from wren.exceptions import AudioIOError
from wren.hashing import hash_file
from wren.logging import get_logger
from wren.silence import find_non_silent_range

logger = get_logger("trim")

# Hex characters of the content hash used in output file names.
_OUTPUT_HASH_PREFIX_LEN = 16


def _new_asset_id() -> str:
    return str(uuid.uuid4())


def trimmed_file_name(content_hash: str, suffix: str) -> str:
    """File name for trimmed content with the given hash."""
    return f"trimmed_{content_hash[:_OUTPUT_HASH_PREFIX_LEN]}{suffix}"


class TrimmedAssetBuilder:
    """Turns a source file into either a no-op or a new trimmed file.

    Persisting the resulting asset record is left to the caller.

    Args:
        output_dir: Directory for trimmed files. Default: the source's directory.
        mode: Backward scan policy for the end boundary.
        id_factory: Allocates asset ids. Default: random UUID4 strings.
        hash_chunk_size: Read size used when hashing files.
    """

    def __init__(
        self,
        *,
        output_dir: str | os.PathLike[str] | None = None,
        mode: TrailingSilenceMode = TrailingSilenceMode.EXACT,
        id_factory: Callable[[], str] = _new_asset_id,
        hash_chunk_size: int = HASH_CHUNK_SIZE_BYTES,
    ) -> None:
        self._output_dir = Path(output_dir) if output_dir is not None else None
        self._mode = mode
        self._id_factory = id_factory
        self._hash_chunk_size = hash_chunk_size

    @property
    def mode(self) -> TrailingSilenceMode:
        return self._mode

    def build(
        self,
        source_path: str | os.PathLike[str],
        buffer: SampleBuffer | None = None,
        *,
        source_hash: str | None = None,
        silence_threshold: float | None = DEFAULT_SILENCE_THRESHOLD,
        min_silence_duration: float | None = DEFAULT_MIN_SILENCE_DURATION_S,
    ) -> TrimResult:
        """Trim leading/trailing silence from ``source_path``.

        Args:
            source_path: The source container file.
            buffer: Its decoded samples. Decoded from ``source_path`` when None.
            source_hash: Content hash of ``source_path`` if already known.
            silence_threshold: Fraction of full scale in [0, 1].
            min_silence_duration: Seconds, see ``find_non_silent_range``.

        Returns:
            TrimResult describing the no-op or the new file.

        Raises:
            AudioInputError: Source missing or unreadable.
            AudioFormatError: Source is not valid integer PCM.
            AudioEncodeError: Trimmed buffer could not be written.
            AudioIOError: Hashing, moving or deleting files failed.
        """
        source = Path(source_path)
        if buffer is None:
            buffer = read_audio(source)

        start, end = find_non_silent_range(
            buffer.samples,
            buffer.channels,
            buffer.sample_rate,
            silence_threshold,
            min_silence_duration,
            bit_depth=buffer.bit_depth,
            mode=self._mode,
        )

        if (start, end) == (0, buffer.frame_count) or end == start:
            original_hash = source_hash or hash_file(source, self._hash_chunk_size)
            logger.info(
                "trim_noop_full_range",
                source=str(source),
                frames=buffer.frame_count,
            )
            return TrimResult(content_hash=original_hash, was_trimmed=False, no_op=True)

        container = probe_container(source)
        output_dir = self._output_dir or source.parent
        output_dir.mkdir(parents=True, exist_ok=True)

        temp_path = self._encode_to_temp(
            buffer.slice_frames(start, end), container, output_dir, source.suffix
        )
        try:
            content_hash = hash_file(temp_path, self._hash_chunk_size)
            original_hash = source_hash or hash_file(source, self._hash_chunk_size)
        except Exception:
            _discard(temp_path)
            raise

        if content_hash == original_hash:
            _discard(temp_path)
            logger.warning(
                "trim_noop_identical_content",
                source=str(source),
                start_frame=start,
                end_frame=end,
            )
            return TrimResult(content_hash=original_hash, was_trimmed=False, no_op=True)

        output_path = output_dir / trimmed_file_name(content_hash, source.suffix)
        try:
            os.replace(temp_path, output_path)
        except OSError as err:
            _discard(temp_path)
            raise AudioIOError("move trimmed file", str(err)) from err

        new_asset_id = self._id_factory()
        logger.info(
            "trim_created",
            source=str(source),
            output_path=str(output_path),
            start_frame=start,
            end_frame=end,
            removed_frames=buffer.frame_count - (end - start),
            content_hash=content_hash,
            new_asset_id=new_asset_id,
        )
        return TrimResult(
            content_hash=content_hash,
            was_trimmed=True,
            no_op=False,
            output_path=str(output_path),
            new_asset_id=new_asset_id,
        )

    @staticmethod
    def _encode_to_temp(
        trimmed: SampleBuffer,
        container: AudioContainer,
        output_dir: Path,
        suffix: str,
    ) -> Path:
        try:
            fd, name = tempfile.mkstemp(prefix=".trim-", suffix=suffix, dir=output_dir)
        except OSError as err:
            raise AudioIOError("create trimmed file", str(err)) from err
        os.close(fd)
        temp_path = Path(name)
        try:
            write_audio(temp_path, trimmed, container)
        except Exception:
            _discard(temp_path)
            raise
        return temp_path


def _discard(path: Path) -> None:
    with contextlib.suppress(FileNotFoundError):
        path.unlink()
