"""Locate the payload inside a bundle file and hash it.

A bundle ends with an 8-byte big-endian length giving the size of the bundle
payload. Anything in front of the payload is an integrity block. Only unsigned
bundles (no prefix) are accepted for now.
"""

from __future__ import annotations

import hashlib
import io
import logging
import os
from typing import BinaryIO

from .constants import TRAILING_LENGTH_SIZE
from .exceptions import (
    DigestError,
    MalformedTrailingLength,
    NegativeIntegrityBlockLength,
    UnsupportedExistingBlock,
)
from .models import (
    BlockPresence,
    IntegrityBlock,
    NoIntegrityBlock,
    UnsupportedIntegrityBlock,
    generate_empty_integrity_block,
)
from .utils import resolve_chunk_size

logger = logging.getLogger(__name__)


def _stream_size(stream: BinaryIO) -> int:
    return stream.seek(0, io.SEEK_END)


def read_payload_length(stream: BinaryIO) -> int:
    """Read the trailing big-endian payload length from the last 8 bytes."""
    try:
        size = _stream_size(stream)
        if size < TRAILING_LENGTH_SIZE:
            raise MalformedTrailingLength(
                f"bundle is {size} bytes, too short for a {TRAILING_LENGTH_SIZE}-byte trailing length"
            )
        stream.seek(-TRAILING_LENGTH_SIZE, io.SEEK_END)
        raw = stream.read(TRAILING_LENGTH_SIZE)
    except OSError as e:
        raise MalformedTrailingLength(f"failed to read trailing length: {e}") from e
    if len(raw) != TRAILING_LENGTH_SIZE:
        raise MalformedTrailingLength(f"short read of trailing length: got {len(raw)} bytes")
    return int.from_bytes(raw, "big")


def inspect_bundle(stream: BinaryIO) -> BlockPresence:
    """Classify the bundle as unsigned or as already carrying an integrity block."""
    payload_length = read_payload_length(stream)
    try:
        file_size = _stream_size(stream)
    except OSError as e:
        raise MalformedTrailingLength(f"failed to determine bundle size: {e}") from e
    block_length = file_size - payload_length
    logger.debug(
        "bundle size=%d payload length=%d integrity block length=%d",
        file_size,
        payload_length,
        block_length,
    )
    if block_length < 0:
        raise NegativeIntegrityBlockLength(file_size, payload_length)
    if block_length == 0:
        return NoIntegrityBlock()
    return UnsupportedIntegrityBlock(block_length)


def obtain_integrity_block(stream: BinaryIO) -> tuple[IntegrityBlock, int]:
    """Return a fresh empty block and the payload offset for an unsigned bundle.

    Raises :class:`UnsupportedExistingBlock` when the bundle is already signed;
    its ``offset`` is diagnostic only.
    """
    presence = inspect_bundle(stream)
    if isinstance(presence, UnsupportedIntegrityBlock):
        raise UnsupportedExistingBlock(presence.length)
    return generate_empty_integrity_block(), presence.offset


def obtain_integrity_block_from_path(path: str | os.PathLike[str]) -> tuple[IntegrityBlock, int]:
    with open(path, "rb") as f:
        return obtain_integrity_block(f)


def compute_payload_sha512(
    stream: BinaryIO, offset: int, *, chunk_size: int | None = None
) -> bytes:
    """SHA-512 over everything from ``offset`` to the end of ``stream``."""
    size = resolve_chunk_size(chunk_size)
    h = hashlib.sha512()
    total = 0
    try:
        stream.seek(offset, io.SEEK_SET)
        while True:
            chunk = stream.read(size)
            if not chunk:
                break
            h.update(chunk)
            total += len(chunk)
    except (OSError, ValueError) as e:
        raise DigestError(f"failed to hash payload from offset {offset}: {e}") from e
    logger.debug("hashed %d payload bytes from offset %d", total, offset)
    return h.digest()


def compute_payload_sha512_from_path(
    path: str | os.PathLike[str], offset: int, *, chunk_size: int | None = None
) -> bytes:
    with open(path, "rb") as f:
        return compute_payload_sha512(f, offset, chunk_size=chunk_size)
