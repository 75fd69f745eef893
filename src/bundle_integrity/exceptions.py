from __future__ import annotations

from enum import Enum


class BundleIntegrityError(Exception):
    """Base class for all errors raised by bundle_integrity."""


class MalformedTrailingLength(BundleIntegrityError):
    """The bundle is too short to carry a trailing length, or reading it failed."""


class NegativeIntegrityBlockLength(BundleIntegrityError):
    """The declared payload length is larger than the whole file."""

    def __init__(self, file_size: int, payload_length: int) -> None:
        super().__init__(
            "integrity block length should never be negative: trailing payload length "
            f"{payload_length} is bigger than the file size {file_size}"
        )
        self.file_size = file_size
        self.payload_length = payload_length


class UnsupportedExistingBlock(BundleIntegrityError):
    """The bundle already starts with an integrity block.

    ``offset`` is the length of the detected prefix and is informational only.
    """

    def __init__(self, offset: int) -> None:
        super().__init__(
            f"bundle already contains an integrity block ({offset} bytes); "
            "please provide an unsigned bundle"
        )
        self.offset = offset


class EncodingError(BundleIntegrityError):
    """The canonical encoder rejected part of the integrity block."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(f"failed to encode {stage}: {message}")
        self.stage = stage


class ConfigError(BundleIntegrityError, ValueError):
    """Bad key material, chunk size or other caller-supplied setting."""


class DigestError(BundleIntegrityError):
    pass


class SchemaError(BundleIntegrityError):
    pass


class SignatureInvalid(BundleIntegrityError):
    pass


class ReasonCode(str, Enum):
    MALFORMED_TRAILING_LENGTH = "malformed_trailing_length"
    NEGATIVE_BLOCK_LENGTH = "negative_block_length"
    EXISTING_BLOCK = "existing_integrity_block"
    ENCODING_ERROR = "encoding_error"
    DIGEST_ERROR = "digest_error"
    SCHEMA_ERROR = "schema_error"
    SIGNATURE_INVALID = "signature_invalid"
    CONFIG_ERROR = "config_error"
    IO_ERROR = "io_error"
    UNKNOWN = "unknown_error"


_REASONS: dict[type[BaseException], ReasonCode] = {
    MalformedTrailingLength: ReasonCode.MALFORMED_TRAILING_LENGTH,
    NegativeIntegrityBlockLength: ReasonCode.NEGATIVE_BLOCK_LENGTH,
    UnsupportedExistingBlock: ReasonCode.EXISTING_BLOCK,
    EncodingError: ReasonCode.ENCODING_ERROR,
    DigestError: ReasonCode.DIGEST_ERROR,
    SchemaError: ReasonCode.SCHEMA_ERROR,
    SignatureInvalid: ReasonCode.SIGNATURE_INVALID,
    ConfigError: ReasonCode.CONFIG_ERROR,
    OSError: ReasonCode.IO_ERROR,
}


def reason_code_for_exception(exc: BaseException) -> str:
    """Map an exception to its stable reason code string."""
    for klass in type(exc).__mro__:
        code = _REASONS.get(klass)
        if code is not None:
            return code.value
    return ReasonCode.UNKNOWN.value
