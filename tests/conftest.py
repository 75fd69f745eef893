from __future__ import annotations

import pathlib
from collections.abc import Callable

import pytest

SEED = "AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA"  # 32 zero bytes base64url


def bundle_bytes(size: int, trailing: int | None = None) -> bytes:
    """A fake bundle of ``size`` bytes whose last 8 bytes encode ``trailing`` (default: size)."""
    assert size >= 8
    body = bytes(i % 251 for i in range(size - 8))
    return body + (size if trailing is None else trailing).to_bytes(8, "big")


@pytest.fixture
def make_bundle(tmp_path: pathlib.Path) -> Callable[..., pathlib.Path]:
    def _make(size: int = 100, trailing: int | None = None, name: str = "b.wbn") -> pathlib.Path:
        p = tmp_path / name
        p.write_bytes(bundle_bytes(size, trailing))
        return p

    return _make
