"""
End-to-end example: integrity block for an unsigned bundle

This script demonstrates:
- Resolving the payload offset of an unsigned bundle
- Hashing the payload with SHA-512
- Signing the integrity block with Ed25519
- Writing and re-inspecting the signed bundle
"""

import pathlib
import tempfile

from bundle_integrity import (
    Ed25519Signer,
    compute_payload_sha512_from_path,
    encode_block,
    inspect_bundle,
    obtain_integrity_block_from_path,
    verify_newest_signature,
    write_signed_bundle,
)

workdir = pathlib.Path(tempfile.mkdtemp())

# 1. Fake unsigned bundle: 92 bytes of payload followed by its 8-byte big-endian length
bundle = workdir / "demo.wbn"
bundle.write_bytes(b"\x00" * 92 + (100).to_bytes(8, "big"))

# 2. No integrity block yet, so the payload starts at offset 0
block, offset = obtain_integrity_block_from_path(bundle)
print("Offset:", offset, "empty block:", encode_block(block).hex())

# 3. Digest of the payload region
digest = compute_payload_sha512_from_path(bundle, offset)
print("SHA-512:", digest.hex())

# 4. Sign with a deterministic demo key and write the signed bundle
signer = Ed25519Signer("AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA")
signed = workdir / "demo.signed.wbn"
signed_block = write_signed_bundle(bundle, signed, signer)
print("Signature verification:", verify_newest_signature(signed_block, digest))

# 5. The signed bundle now reports an integrity block in front of the payload
with open(signed, "rb") as f:
    print("Inspect:", inspect_bundle(f))
