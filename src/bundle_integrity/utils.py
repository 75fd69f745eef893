from __future__ import annotations

import base64
import os

from .constants import CHUNK_SIZE_ENV, DEFAULT_CHUNK_SIZE
from .exceptions import ConfigError


def b64u_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64u_decode(s: str) -> bytes:
    pad = "=" * (-len(s) % 4)
    return base64.urlsafe_b64decode(s + pad)


def be_uint64(n: int) -> bytes:
    return n.to_bytes(8, "big")


def resolve_chunk_size(chunk_size: int | None = None) -> int:
    """Explicit argument wins, then ``BUNDLE_INTEGRITY_CHUNK_SIZE``, then the default."""
    if chunk_size is None:
        raw = os.getenv(CHUNK_SIZE_ENV)
        if raw:
            try:
                chunk_size = int(raw)
            except ValueError as e:
                raise ConfigError(f"{CHUNK_SIZE_ENV} must be an integer, got {raw!r}") from e
        else:
            chunk_size = DEFAULT_CHUNK_SIZE
    if chunk_size <= 0:
        raise ConfigError(f"chunk size must be positive, got {chunk_size}")
    return chunk_size
