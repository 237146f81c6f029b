"""Command line entry point: ``xtsign keygen | sign | verify``."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import load_config
from .crypto.keys import generate_keypair, read_private_key_file, write_keypair
from .errors import XTSignError
from .signing.packager import Packager
from .signing.verifier import Verifier


def _cmd_keygen(args: argparse.Namespace) -> int:
    keypair = generate_keypair()
    public_path, private_path = write_keypair(keypair, Path(args.output), overwrite=args.force)
    print("Keypair generated:")
    print(f"  Public:  {public_path}")
    print(f"  Private: {private_path}")
    print("Keep your private key safe and never commit it!")
    return 0


def _cmd_sign(args: argparse.Namespace) -> int:
    config = load_config(args.project_root)
    key_path = Path(args.key) if args.key else config.resolved_private_key_path()
    private_key = read_private_key_file(key_path)
    bundle = Path(args.bundle) if args.bundle else config.root_dir / config.dist_dir
    result = Packager(config).package(
        bundle,
        private_key,
        output_path=args.output,
        private_key_path=key_path,
    )
    print(f"Extension signed and packaged: {result.output_path}")
    print(f"  public_key:   {result.public_key}")
    print(f"  content_hash: {result.hash}")
    return 0


def _cmd_verify(args: argparse.Namespace) -> int:
    config = load_config(args.project_root)
    verifier = Verifier(extension_dir=config.extension_dir)
    target = Path(args.artifact)
    if target.is_dir():
        result = verifier.verify_directory(target, public_key=args.public_key, expected_hash=args.expected_hash)
    else:
        result = verifier.verify_archive(target, public_key=args.public_key, expected_hash=args.expected_hash)
    print(f"{result.status.value}: {target}")
    print(f"  public_key:   {result.public_key}")
    print(f"  content_hash: {result.hash}")
    return 0 if result.valid else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="xtsign", description="Extension signing and packaging tools")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    keygen = sub.add_parser("keygen", help="generate a new keypair for signing extensions")
    keygen.add_argument("-o", "--output", default=".", help="output directory")
    keygen.add_argument("--force", action="store_true", help="overwrite existing key files")
    keygen.set_defaults(func=_cmd_keygen)

    sign = sub.add_parser("sign", help="sign and package an extension")
    sign.add_argument("bundle", nargs="?", help="build output directory (default: build.dist_dir from project config)")
    sign.add_argument("-k", "--key", help="private key file (default from project config)")
    sign.add_argument("-o", "--output", help="output path for the .xt artifact")
    sign.add_argument("--project-root", default=None, help="project root (default: cwd)")
    sign.set_defaults(func=_cmd_sign)

    verify = sub.add_parser("verify", help="verify a signed artifact or extracted directory")
    verify.add_argument("artifact", help=".xt file or extracted directory")
    verify.add_argument("--public-key", help="trusted public key (hex) instead of the embedded one")
    verify.add_argument("--expected-hash", help="expected content hash (hex)")
    verify.add_argument("--project-root", default=None, help="project root (default: cwd)")
    verify.set_defaults(func=_cmd_verify)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (XTSignError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
