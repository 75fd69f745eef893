from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import INTEGRITY_BLOCK_MAGIC, VERSION_B1


class IntegritySignature(BaseModel):
    """One entry of the signature stack: named attributes plus the raw signature."""

    model_config = ConfigDict(strict=True)

    attributes: dict[str, bytes] = Field(default_factory=dict)
    signature: bytes = b""


class IntegrityBlock(BaseModel):
    """Magic, version and the newest-first signature stack."""

    model_config = ConfigDict(strict=True)

    magic: bytes = Field(default=INTEGRITY_BLOCK_MAGIC, frozen=True)
    version: bytes = Field(default=VERSION_B1, frozen=True)
    signature_stack: list[IntegritySignature] = Field(default_factory=list)

    @field_validator("magic")
    @classmethod
    def _check_magic(cls, v: bytes) -> bytes:
        if v != INTEGRITY_BLOCK_MAGIC:
            raise ValueError("unexpected integrity block magic")
        return v

    @field_validator("version")
    @classmethod
    def _check_version(cls, v: bytes) -> bytes:
        if v != VERSION_B1:
            raise ValueError("unsupported integrity block version")
        return v

    def add_signature(self, signature: IntegritySignature) -> None:
        """Push ``signature`` on top of the stack (index 0 is the newest)."""
        self.signature_stack.insert(0, signature)


def generate_empty_integrity_block() -> IntegrityBlock:
    """A block with the fixed magic and version and no signatures yet."""
    return IntegrityBlock()


def get_last_signature_attributes(block: IntegrityBlock) -> dict[str, bytes]:
    """Return the attributes of the newest signature.

    An empty stack yields a new dict on every call so callers may mutate it freely.
    """
    if not block.signature_stack:
        return {}
    return block.signature_stack[0].attributes


@dataclass(frozen=True)
class NoIntegrityBlock:
    """The bundle is unsigned; its payload starts at byte 0."""

    offset: int = 0


@dataclass(frozen=True)
class UnsupportedIntegrityBlock:
    """The bundle starts with an integrity block of ``length`` bytes that we cannot parse."""

    length: int


BlockPresence = Union[NoIntegrityBlock, UnsupportedIntegrityBlock]
