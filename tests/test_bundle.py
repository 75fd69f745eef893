from __future__ import annotations

import hashlib
import io
import pathlib
from collections.abc import Callable

import pytest
from bundle_integrity.bundle import (
    compute_payload_sha512,
    compute_payload_sha512_from_path,
    inspect_bundle,
    obtain_integrity_block,
    obtain_integrity_block_from_path,
    read_payload_length,
)
from bundle_integrity.cbor import encode_block
from bundle_integrity.exceptions import (
    ConfigError,
    DigestError,
    MalformedTrailingLength,
    NegativeIntegrityBlockLength,
    UnsupportedExistingBlock,
    reason_code_for_exception,
)
from bundle_integrity.models import NoIntegrityBlock, UnsupportedIntegrityBlock

from .conftest import bundle_bytes

SHA512_EMPTY = (
    "cf83e1357eefb8bdf1542850d66d8007d620e4050b5715dc83f4a921d36ce9ce"
    "47d0d13c5d85f2b0ff8318d2877eec2f63b931bd47417a81a538327af927da3e"
)


class _FailingReads(io.BytesIO):
    def __init__(self, data: bytes, fail_after: int) -> None:
        super().__init__(data)
        self._reads = 0
        self._fail_after = fail_after

    def read(self, size: int | None = -1) -> bytes:
        self._reads += 1
        if self._reads > self._fail_after:
            raise OSError("device went away")
        return super().read(size)


class _FailingSeek(io.BytesIO):
    def seek(self, offset: int, whence: int = 0) -> int:
        raise OSError("seek not supported")


# --- trailing length ---


def test_read_payload_length() -> None:
    assert read_payload_length(io.BytesIO(bundle_bytes(100))) == 100
    assert read_payload_length(io.BytesIO(bundle_bytes(40, trailing=2**63 + 5))) == 2**63 + 5


def test_read_payload_length_exactly_eight_bytes() -> None:
    assert read_payload_length(io.BytesIO((8).to_bytes(8, "big"))) == 8


@pytest.mark.parametrize("size", [0, 1, 7])
def test_too_short_file(size: int) -> None:
    with pytest.raises(MalformedTrailingLength):
        read_payload_length(io.BytesIO(b"\x00" * size))


def test_seek_failure_is_malformed_trailing_length() -> None:
    with pytest.raises(MalformedTrailingLength):
        read_payload_length(_FailingSeek(bundle_bytes(100)))


# --- resolver ---


def test_unsigned_bundle_resolves_to_offset_zero(make_bundle: Callable[..., pathlib.Path]) -> None:
    path = make_bundle(100)
    block, offset = obtain_integrity_block_from_path(path)
    assert offset == 0
    assert block.signature_stack == []
    assert encode_block(block) == bytes.fromhex("8348f09f968bf09f93a6443162000080")


def test_resolver_returns_fresh_block_each_time() -> None:
    stream = io.BytesIO(bundle_bytes(64))
    a, _ = obtain_integrity_block(stream)
    b, _ = obtain_integrity_block(stream)
    assert a is not b


def test_inspect_tagged_results() -> None:
    assert inspect_bundle(io.BytesIO(bundle_bytes(100))) == NoIntegrityBlock()
    assert inspect_bundle(io.BytesIO(bundle_bytes(100, trailing=90))) == UnsupportedIntegrityBlock(10)


def test_payload_larger_than_file_is_invariant_violation() -> None:
    with pytest.raises(NegativeIntegrityBlockLength) as ei:
        obtain_integrity_block(io.BytesIO(bundle_bytes(100, trailing=101)))
    assert ei.value.file_size == 100
    assert ei.value.payload_length == 101
    assert reason_code_for_exception(ei.value) == "negative_block_length"


def test_existing_block_is_rejected_with_diagnostic_offset() -> None:
    with pytest.raises(UnsupportedExistingBlock) as ei:
        obtain_integrity_block(io.BytesIO(bundle_bytes(100, trailing=84)))
    assert ei.value.offset == 16
    assert "unsigned bundle" in str(ei.value)
    assert reason_code_for_exception(ei.value) == "existing_integrity_block"


# --- digest ---


def test_digest_is_deterministic() -> None:
    data = bundle_bytes(1000)
    stream = io.BytesIO(data)
    first = compute_payload_sha512(stream, 0)
    second = compute_payload_sha512(stream, 0)
    assert first == second
    assert len(first) == 64


def test_digest_from_zero_is_whole_file_hash(make_bundle: Callable[..., pathlib.Path]) -> None:
    path = make_bundle(5000)
    expected = hashlib.sha512(path.read_bytes()).digest()
    assert compute_payload_sha512_from_path(path, 0) == expected
    # small chunks must not change the result
    assert compute_payload_sha512_from_path(path, 0, chunk_size=7) == expected


def test_digest_from_offset_hashes_tail_only() -> None:
    data = bundle_bytes(300)
    assert compute_payload_sha512(io.BytesIO(data), 120) == hashlib.sha512(data[120:]).digest()


def test_digest_at_end_of_file_is_empty_hash() -> None:
    data = bundle_bytes(300)
    assert compute_payload_sha512(io.BytesIO(data), len(data)).hex() == SHA512_EMPTY


def test_digest_read_failure_mid_stream() -> None:
    stream = _FailingReads(bundle_bytes(1000), fail_after=2)
    with pytest.raises(DigestError):
        compute_payload_sha512(stream, 0, chunk_size=100)


def test_digest_seek_failure() -> None:
    with pytest.raises(DigestError):
        compute_payload_sha512(_FailingSeek(bundle_bytes(100)), 0)


def test_digest_negative_offset() -> None:
    with pytest.raises(DigestError):
        compute_payload_sha512(io.BytesIO(bundle_bytes(100)), -1)


def test_chunk_size_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    data = bundle_bytes(333)
    monkeypatch.setenv("BUNDLE_INTEGRITY_CHUNK_SIZE", "10")
    assert compute_payload_sha512(io.BytesIO(data), 0) == hashlib.sha512(data).digest()
    monkeypatch.setenv("BUNDLE_INTEGRITY_CHUNK_SIZE", "nope")
    with pytest.raises(ValueError):
        compute_payload_sha512(io.BytesIO(data), 0)


def test_non_positive_chunk_size_rejected() -> None:
    with pytest.raises(ConfigError):
        compute_payload_sha512(io.BytesIO(bundle_bytes(100)), 0, chunk_size=0)


def test_reason_codes_for_config_and_io_errors() -> None:
    assert reason_code_for_exception(ConfigError("bad")) == "config_error"
    assert reason_code_for_exception(FileNotFoundError("gone")) == "io_error"
    assert reason_code_for_exception(RuntimeError("?")) == "unknown_error"


# --- end to end ---


def test_hundred_byte_bundle_scenario(make_bundle: Callable[..., pathlib.Path]) -> None:
    path = make_bundle(100)
    with open(path, "rb") as f:
        block, offset = obtain_integrity_block(f)
        digest = compute_payload_sha512(f, offset)
    assert offset == 0
    assert digest == hashlib.sha512(path.read_bytes()).digest()
    assert len(encode_block(block)) == 16
