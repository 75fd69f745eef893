"""Canonical CBOR serialization of integrity blocks.

Wire layout::

    IntegrityBlock     = [ magic: bstr, version: bstr, [ * IntegritySignature ] ]
    IntegritySignature = [ { * tstr => bstr }, signature: bstr ]

Encoding is delegated to ``cbor2`` in canonical mode, which orders map keys
by (encoded length, bytes) and always emits minimal-length headers. The
signature stack is written in stack order, newest first.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import cbor2

from .exceptions import EncodingError
from .models import IntegrityBlock, IntegritySignature

logger = logging.getLogger(__name__)

STAGE_HEADER = "block header"
STAGE_ATTRIBUTES = "signature attributes"
STAGE_SIGNATURE = "signature"


def _dumps(obj: Any, stage: str) -> bytes:
    try:
        return cbor2.dumps(obj, canonical=True)
    except (cbor2.CBOREncodeError, TypeError, ValueError) as e:
        raise EncodingError(stage, str(e)) from e


def _attributes_value(attributes: Mapping[str, bytes]) -> dict[str, bytes]:
    out: dict[str, bytes] = {}
    for key, value in attributes.items():
        if not isinstance(key, str):
            raise EncodingError(STAGE_ATTRIBUTES, f"attribute name must be str, got {type(key).__name__}")
        if not isinstance(value, (bytes, bytearray)):
            raise EncodingError(
                STAGE_ATTRIBUTES, f"attribute {key!r} must be bytes, got {type(value).__name__}"
            )
        out[key] = bytes(value)
    return out


def _signature_value(sig: IntegritySignature) -> list[Any]:
    if not isinstance(sig.signature, (bytes, bytearray)):
        raise EncodingError(STAGE_SIGNATURE, f"signature must be bytes, got {type(sig.signature).__name__}")
    return [_attributes_value(sig.attributes), bytes(sig.signature)]


def encode_attributes(attributes: Mapping[str, bytes]) -> bytes:
    """Canonical map encoding of one attribute mapping."""
    return _dumps(_attributes_value(attributes), STAGE_ATTRIBUTES)


def encode_signature(sig: IntegritySignature) -> bytes:
    """Encode one signature as a 2-element array (attributes map, signature bytes)."""
    return _dumps(_signature_value(sig), STAGE_SIGNATURE)


def encode_block(block: IntegrityBlock) -> bytes:
    """Encode the whole block as a 3-element array (magic, version, signature stack).

    Nothing is returned unless every part encodes; the first failure raises.
    """
    for name in ("magic", "version"):
        if not isinstance(getattr(block, name), (bytes, bytearray)):
            raise EncodingError(STAGE_HEADER, f"{name} must be bytes")
    stack = [_signature_value(sig) for sig in block.signature_stack]
    data = _dumps([bytes(block.magic), bytes(block.version), stack], STAGE_HEADER)
    logger.debug("encoded integrity block: %d signature(s), %d bytes", len(stack), len(data))
    return data

