from __future__ import annotations

import binascii
import hashlib
import os

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from .exceptions import ConfigError
from .utils import b64u_decode, b64u_encode


class BaseSigner:
    def public_key_bytes(self) -> bytes:  # pragma: no cover - interface
        raise NotImplementedError

    def sign(self, msg: bytes) -> bytes:  # pragma: no cover - interface
        raise NotImplementedError

    @property
    def kid(self) -> str:
        """Short key id: base64url of the first 8 bytes of sha256(public key)."""
        return b64u_encode(hashlib.sha256(self.public_key_bytes()).digest()[:8])


class Ed25519Signer(BaseSigner):
    """Ed25519 signer built from a base64url-encoded 32-byte seed."""

    def __init__(self, seed_b64u: str) -> None:
        try:
            seed = b64u_decode(seed_b64u)
        except binascii.Error as e:
            raise ConfigError(f"Ed25519 seed is not valid base64url: {e}") from e
        if len(seed) != 32:
            raise ConfigError("Ed25519 seed must be 32 bytes")
        self._key = Ed25519PrivateKey.from_private_bytes(seed)

    @classmethod
    def from_private_key(cls, key: Ed25519PrivateKey) -> Ed25519Signer:
        raw = key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return cls(b64u_encode(raw))

    @classmethod
    def from_pem(cls, path: str | os.PathLike[str], password: bytes | None = None) -> Ed25519Signer:
        with open(path, "rb") as f:
            data = f.read()
        try:
            key = serialization.load_pem_private_key(data, password=password)
        except (ValueError, TypeError) as e:
            raise ConfigError(f"cannot load private key from {path}: {e}") from e
        if not isinstance(key, Ed25519PrivateKey):
            raise ConfigError("not an Ed25519 private key")
        return cls.from_private_key(key)

    def public_key_bytes(self) -> bytes:
        return self._key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )

    def sign(self, msg: bytes) -> bytes:
        if not isinstance(msg, (bytes, bytearray)):
            raise ValueError("message must be bytes")
        return self._key.sign(bytes(msg))
