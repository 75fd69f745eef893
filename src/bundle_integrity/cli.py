from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence

from .bundle import (
    compute_payload_sha512_from_path,
    inspect_bundle,
    obtain_integrity_block_from_path,
)
from .cbor import encode_block
from .exceptions import BundleIntegrityError, reason_code_for_exception
from .models import NoIntegrityBlock, generate_empty_integrity_block
from .signers import BaseSigner, Ed25519Signer
from .signing import write_signed_bundle

logger = logging.getLogger("bundle_integrity.cli")


def _emit(obj: dict) -> None:
    print(json.dumps(obj, sort_keys=True))


def _cmd_inspect(args: argparse.Namespace) -> int:
    with open(args.bundle, "rb") as f:
        presence = inspect_bundle(f)
    signed = not isinstance(presence, NoIntegrityBlock)
    offset = presence.length if signed else presence.offset
    if args.json:
        _emit({"signed": signed, "offset": offset})
    elif signed:
        print(f"integrity block present ({offset} bytes)")
    else:
        print("unsigned bundle, payload offset 0")
    return 0


def _cmd_digest(args: argparse.Namespace) -> int:
    _, offset = obtain_integrity_block_from_path(args.bundle)
    digest = compute_payload_sha512_from_path(args.bundle, offset, chunk_size=args.chunk_size)
    print(digest.hex())
    return 0


def _cmd_encode_empty(args: argparse.Namespace) -> int:
    data = encode_block(generate_empty_integrity_block())
    if args.out:
        with open(args.out, "wb") as f:
            f.write(data)
    else:
        print(data.hex())
    return 0


def _load_signer(args: argparse.Namespace) -> BaseSigner:
    if args.seed:
        return Ed25519Signer(args.seed)
    return Ed25519Signer.from_pem(args.key)


def _cmd_sign(args: argparse.Namespace) -> int:
    signer = _load_signer(args)
    block = write_signed_bundle(args.bundle, args.out, signer, chunk_size=args.chunk_size)
    if args.json:
        _emit({"out": args.out, "kid": signer.kid, "signatures": len(block.signature_stack)})
    else:
        print(f"wrote {args.out}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="bundle-integrity")
    ap.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    sub = ap.add_subparsers(dest="command", required=True)

    p_inspect = sub.add_parser("inspect", help="report whether a bundle carries an integrity block")
    p_inspect.add_argument("--bundle", required=True)
    p_inspect.add_argument("--json", action="store_true")
    p_inspect.set_defaults(func=_cmd_inspect)

    p_digest = sub.add_parser("digest", help="print the SHA-512 of the bundle payload")
    p_digest.add_argument("--bundle", required=True)
    p_digest.add_argument("--chunk-size", type=int, default=None)
    p_digest.set_defaults(func=_cmd_digest)

    p_empty = sub.add_parser("encode-empty", help="emit an empty integrity block")
    p_empty.add_argument("--out", help="write raw bytes here instead of printing hex")
    p_empty.set_defaults(func=_cmd_encode_empty)

    p_sign = sub.add_parser("sign", help="sign an unsigned bundle with Ed25519")
    p_sign.add_argument("--bundle", required=True)
    p_sign.add_argument("--out", required=True)
    key = p_sign.add_mutually_exclusive_group(required=True)
    key.add_argument("--seed", help="base64url 32-byte Ed25519 seed")
    key.add_argument("--key", help="PEM Ed25519 private key file")
    p_sign.add_argument("--chunk-size", type=int, default=None)
    p_sign.add_argument("--json", action="store_true")
    p_sign.set_defaults(func=_cmd_sign)
    return ap


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (BundleIntegrityError, OSError) as e:
        logger.debug("command %s failed", args.command, exc_info=True)
        if getattr(args, "json", False):
            _emit({"error": str(e), "reason": reason_code_for_exception(e)})
        else:
            print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
