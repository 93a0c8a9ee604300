"""Content addressing.

SHA-256 over the full byte content, hex-encoded. The algorithm is part of the
stored-data contract: every persisted ``content_hash`` is compared against
digests produced here, so changing it invalidates all existing records.
"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING, BinaryIO

from wren._audio_constants import HASH_ALGORITHM, HASH_CHUNK_SIZE_BYTES
from wren.exceptions import AudioInputError, AudioIOError

if TYPE_CHECKING:
    import os

__all__ = ["HASH_ALGORITHM", "hash_bytes", "hash_file", "hash_stream"]


def hash_bytes(data: bytes) -> str:
    """Hex digest of an in-memory byte string."""
    return hashlib.new(HASH_ALGORITHM, data).hexdigest()


def hash_stream(stream: BinaryIO, chunk_size: int = HASH_CHUNK_SIZE_BYTES) -> str:
    """Hex digest of everything readable from ``stream``'s current position.

    Reads in ``chunk_size`` blocks so arbitrarily large files hash in
    constant memory.

    Raises:
        AudioIOError: If the stream cannot be fully read.
    """
    digest = hashlib.new(HASH_ALGORITHM)
    try:
        while chunk := stream.read(chunk_size):
            digest.update(chunk)
    except OSError as err:
        raise AudioIOError("hash", str(err)) from err
    return digest.hexdigest()


def hash_file(
    path: str | os.PathLike[str],
    chunk_size: int = HASH_CHUNK_SIZE_BYTES,
) -> str:
    """Hex digest of the file at ``path``.

    Raises:
        AudioInputError: If the file does not exist or cannot be opened.
        AudioIOError: If reading fails part-way.
    """
    try:
        f = open(path, "rb")  # noqa: SIM115
    except OSError as err:
        raise AudioInputError.from_os_error(str(path), err) from err
    with f:
        return hash_stream(f, chunk_size)
