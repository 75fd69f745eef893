"""Add Ed25519 signatures to an integrity block and write signed bundles.

The signed message binds the payload digest, the block as it was before the
new signature was pushed, and the new signature's attributes::

    len64(digest) || digest || len64(block) || block || len64(attrs) || attrs

``len64`` is an 8-byte big-endian length prefix.
"""

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import tempfile
from collections.abc import Mapping

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from .bundle import compute_payload_sha512, obtain_integrity_block
from .cbor import encode_attributes, encode_block
from .constants import ED25519_PUBLIC_KEY_ATTRIBUTE, SHA512_DIGEST_SIZE
from .exceptions import SchemaError, SignatureInvalid, reason_code_for_exception
from .models import IntegrityBlock, IntegritySignature
from .signers import BaseSigner
from .utils import be_uint64

logger = logging.getLogger(__name__)


def data_to_be_signed(
    payload_digest: bytes, block_bytes: bytes, attributes: Mapping[str, bytes]
) -> bytes:
    """Message an Ed25519 signer signs; see the module docstring for the layout."""
    attr_bytes = encode_attributes(attributes)
    return b"".join(
        [
            be_uint64(len(payload_digest)),
            payload_digest,
            be_uint64(len(block_bytes)),
            block_bytes,
            be_uint64(len(attr_bytes)),
            attr_bytes,
        ]
    )


def sign_integrity_block(
    block: IntegrityBlock, payload_digest: bytes, signer: BaseSigner
) -> IntegritySignature:
    """Sign ``payload_digest`` and push the new signature onto ``block``."""
    if len(payload_digest) != SHA512_DIGEST_SIZE:
        raise SchemaError(f"payload digest must be {SHA512_DIGEST_SIZE} bytes")
    attributes = {ED25519_PUBLIC_KEY_ATTRIBUTE: signer.public_key_bytes()}
    msg = data_to_be_signed(payload_digest, encode_block(block), attributes)
    sig = IntegritySignature(attributes=attributes, signature=signer.sign(msg))
    block.add_signature(sig)
    logger.debug("added signature by %s; stack size now %d", signer.kid, len(block.signature_stack))
    return sig


def verify_newest_signature_or_raise(block: IntegrityBlock, payload_digest: bytes) -> None:
    """Check the top-of-stack signature against the block beneath it."""
    if not block.signature_stack:
        raise SchemaError("signature stack is empty")
    newest = block.signature_stack[0]
    public_key = newest.attributes.get(ED25519_PUBLIC_KEY_ATTRIBUTE)
    if public_key is None:
        raise SchemaError(f"newest signature has no {ED25519_PUBLIC_KEY_ATTRIBUTE} attribute")
    previous = IntegrityBlock(signature_stack=list(block.signature_stack[1:]))
    msg = data_to_be_signed(payload_digest, encode_block(previous), newest.attributes)
    try:
        Ed25519PublicKey.from_public_bytes(public_key).verify(newest.signature, msg)
    except ValueError as e:
        raise SchemaError(f"invalid Ed25519 public key: {e}") from e
    except InvalidSignature as e:
        raise SignatureInvalid("integrity signature invalid") from e


def verify_newest_signature(block: IntegrityBlock, payload_digest: bytes) -> tuple[bool, str | None]:
    """Boolean variant of :func:`verify_newest_signature_or_raise`."""
    try:
        verify_newest_signature_or_raise(block, payload_digest)
        return True, None
    except (SchemaError, SignatureInvalid) as e:
        return False, reason_code_for_exception(e)


def write_signed_bundle(
    src: str | os.PathLike[str],
    dst: str | os.PathLike[str],
    signer: BaseSigner,
    *,
    chunk_size: int | None = None,
) -> IntegrityBlock:
    """Sign the unsigned bundle at ``src`` and write block + bundle bytes to ``dst``.

    Output goes to a temporary file beside ``dst`` that is renamed into place
    once complete, so ``dst`` may be ``src`` and is never left half written.
    """
    dst_dir = os.path.dirname(os.path.abspath(dst))
    fd, tmp_path = tempfile.mkstemp(prefix=".bundle-integrity-", suffix=".tmp", dir=dst_dir)
    try:
        with os.fdopen(fd, "wb") as out, open(src, "rb") as f:
            block, offset = obtain_integrity_block(f)
            digest = compute_payload_sha512(f, offset, chunk_size=chunk_size)
            sign_integrity_block(block, digest, signer)
            block_bytes = encode_block(block)
            f.seek(offset)
            out.write(block_bytes)
            shutil.copyfileobj(f, out)
        os.replace(tmp_path, dst)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_path)
        raise
    logger.info("wrote signed bundle %s (integrity block %d bytes)", dst, len(block_bytes))
    return block
