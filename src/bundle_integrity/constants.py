from __future__ import annotations

# "🖋📦" in UTF-8
INTEGRITY_BLOCK_MAGIC = b"\xf0\x9f\x96\x8b\xf0\x9f\x93\xa6"

# Version marker "b1": 0x31 0x62 followed by two zero bytes
VERSION_B1 = b"\x31\x62\x00\x00"

ED25519_PUBLIC_KEY_ATTRIBUTE = "ed25519PublicKey"

# Width of the big-endian payload length stored at the end of a bundle.
TRAILING_LENGTH_SIZE = 8

DEFAULT_CHUNK_SIZE = 64 * 1024
CHUNK_SIZE_ENV = "BUNDLE_INTEGRITY_CHUNK_SIZE"

SHA512_DIGEST_SIZE = 64
