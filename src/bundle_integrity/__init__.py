from .bundle import (
    compute_payload_sha512,
    compute_payload_sha512_from_path,
    inspect_bundle,
    obtain_integrity_block,
    obtain_integrity_block_from_path,
    read_payload_length,
)
from .cbor import encode_attributes, encode_block, encode_signature
from .constants import ED25519_PUBLIC_KEY_ATTRIBUTE, INTEGRITY_BLOCK_MAGIC, VERSION_B1
from .exceptions import (
    BundleIntegrityError,
    ConfigError,
    DigestError,
    EncodingError,
    MalformedTrailingLength,
    NegativeIntegrityBlockLength,
    ReasonCode,
    SchemaError,
    SignatureInvalid,
    UnsupportedExistingBlock,
    reason_code_for_exception,
)
from .models import (
    BlockPresence,
    IntegrityBlock,
    IntegritySignature,
    NoIntegrityBlock,
    UnsupportedIntegrityBlock,
    generate_empty_integrity_block,
    get_last_signature_attributes,
)
from .signers import BaseSigner, Ed25519Signer
from .signing import (
    data_to_be_signed,
    sign_integrity_block,
    verify_newest_signature,
    verify_newest_signature_or_raise,
    write_signed_bundle,
)

__all__ = [
    "IntegrityBlock",
    "IntegritySignature",
    "NoIntegrityBlock",
    "UnsupportedIntegrityBlock",
    "BlockPresence",
    "generate_empty_integrity_block",
    "get_last_signature_attributes",
    "encode_attributes",
    "encode_signature",
    "encode_block",
    "read_payload_length",
    "inspect_bundle",
    "obtain_integrity_block",
    "obtain_integrity_block_from_path",
    "compute_payload_sha512",
    "compute_payload_sha512_from_path",
    "BaseSigner",
    "Ed25519Signer",
    "data_to_be_signed",
    "sign_integrity_block",
    "verify_newest_signature",
    "verify_newest_signature_or_raise",
    "write_signed_bundle",
    # exceptions
    "BundleIntegrityError",
    "ConfigError",
    "MalformedTrailingLength",
    "NegativeIntegrityBlockLength",
    "UnsupportedExistingBlock",
    "EncodingError",
    "DigestError",
    "SchemaError",
    "SignatureInvalid",
    "ReasonCode",
    "reason_code_for_exception",
    "INTEGRITY_BLOCK_MAGIC",
    "VERSION_B1",
    "ED25519_PUBLIC_KEY_ATTRIBUTE",
    "__version__",
]
try:  # prefer single source of truth from installed metadata
    from importlib.metadata import version as _pkg_version

    __version__ = _pkg_version("bundle-integrity")
except Exception:  # pragma: no cover
    __version__ = "0.0.0"
