"""
Ed25519 key management for extension signing identities.

The public key *is* the extension identity. Only the private key file needs
to be kept around: the public half is recomputed from it on demand.

On-disk format (one line of hex each):
  public.key   raw 32-byte public key  (64 hex chars)
  private.key  PKCS#8 DER private key  (96 hex chars)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey

from ..errors import KeyImportError

logger = logging.getLogger(__name__)

PUBLIC_KEY_FILENAME = "public.key"
PRIVATE_KEY_FILENAME = "private.key"

PUBLIC_KEY_SIZE = 32
SIGNATURE_SIZE = 64

KeyMaterial = Union[str, bytes]


@dataclass
class KeyPair:
    """Wraps an encoded ed25519 key pair."""
    public_key: bytes   # raw 32 bytes
    private_key: bytes  # PKCS#8 DER

    @property
    def public_key_hex(self) -> str:
        return self.public_key.hex()

    @property
    def private_key_hex(self) -> str:
        return self.private_key.hex()


def public_key_bytes(public_key: Ed25519PublicKey) -> bytes:
    return public_key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


def generate_keypair() -> KeyPair:
    """Generate a new ed25519 key pair from the OS random source."""
    private_key = Ed25519PrivateKey.generate()
    private_bytes = private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return KeyPair(public_key=public_key_bytes(private_key.public_key()), private_key=private_bytes)


def load_private_key(material: KeyMaterial) -> Ed25519PrivateKey:
    """Import private key material.

    Accepts PKCS#8 DER bytes, a raw 32-byte seed, PEM text, or hex text of
    either DER or the raw seed.
    """
    if isinstance(material, str):
        text = material.strip()
        if not text:
            raise KeyImportError("empty private key")
        if text.startswith("-----BEGIN"):
            return _load_pem(text.encode("ascii", "replace"))
        try:
            data = bytes.fromhex(text)
        except ValueError as e:
            raise KeyImportError("private key is not valid hex") from e
    elif isinstance(material, (bytes, bytearray)):
        data = bytes(material)
        if data.lstrip().startswith(b"-----BEGIN"):
            return _load_pem(data)
    else:
        raise KeyImportError(f"unsupported private key type: {type(material).__name__}")

    if len(data) == PUBLIC_KEY_SIZE:
        return Ed25519PrivateKey.from_private_bytes(data)

    try:
        key = serialization.load_der_private_key(data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyImportError(f"malformed private key ({len(data)} bytes)") from e
    if not isinstance(key, Ed25519PrivateKey):
        raise KeyImportError("not an Ed25519 private key")
    return key


def _load_pem(data: bytes) -> Ed25519PrivateKey:
    try:
        key = serialization.load_pem_private_key(data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyImportError("malformed PEM private key") from e
    if not isinstance(key, Ed25519PrivateKey):
        raise KeyImportError("not an Ed25519 private key")
    return key


def derive_public_key(material: KeyMaterial) -> bytes:
    """Return the raw 32-byte public key matching the given private key."""
    return public_key_bytes(load_private_key(material).public_key())


def load_public_key(material: KeyMaterial) -> Ed25519PublicKey:
    """Import a raw public key given as 32 bytes or 64 hex chars."""
    if isinstance(material, str):
        try:
            data = bytes.fromhex(material.strip())
        except ValueError as e:
            raise KeyImportError("public key is not valid hex") from e
    else:
        data = bytes(material)
    if len(data) != PUBLIC_KEY_SIZE:
        raise KeyImportError(f"public key must be {PUBLIC_KEY_SIZE} bytes, got {len(data)}")
    return Ed25519PublicKey.from_public_bytes(data)


def write_keypair(keypair: KeyPair, directory: Union[str, Path], overwrite: bool = False) -> Tuple[Path, Path]:
    """Persist the pair as ``public.key`` / ``private.key`` hex files."""
    out = Path(directory)
    out.mkdir(parents=True, exist_ok=True)
    public_path = out / PUBLIC_KEY_FILENAME
    private_path = out / PRIVATE_KEY_FILENAME

    if not overwrite:
        for p in (public_path, private_path):
            if p.exists():
                raise FileExistsError(f"refusing to overwrite existing key file: {p}")

    public_path.write_text(keypair.public_key_hex, encoding="ascii")

    # Private key is created owner-only before any bytes are written
    fd = os.open(private_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="ascii") as f:
        f.write(keypair.private_key_hex)

    logger.info("Wrote keypair to %s", out)
    return public_path, private_path


def read_private_key_file(path: Union[str, Path]) -> str:
    """Read a private key file and return its stripped text."""
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8").strip()
    except FileNotFoundError as e:
        raise KeyImportError(f"private key file not found: {p}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise KeyImportError(f"cannot read private key file {p}: {e}") from e
    if not text:
        raise KeyImportError(f"private key file is empty: {p}")
    return text


__all__ = [
    "KeyPair",
    "KeyMaterial",
    "public_key_bytes",
    "PUBLIC_KEY_FILENAME",
    "PRIVATE_KEY_FILENAME",
    "PUBLIC_KEY_SIZE",
    "SIGNATURE_SIZE",
    "generate_keypair",
    "derive_public_key",
    "load_private_key",
    "load_public_key",
    "write_keypair",
    "read_private_key_file",
]
