"""Compose key derivation, tree hashing and Ed25519 signing."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from ..crypto.hashing import PathLike, hash_tree, hash_tree_async
from ..crypto.keys import KeyMaterial, load_private_key, public_key_bytes

logger = logging.getLogger(__name__)

TreeHasher = Callable[[PathLike], bytes]
AsyncTreeHasher = Callable[[PathLike], Awaitable[bytes]]


@dataclass
class SignatureResult:
    """Hex-encoded outputs of one signing run."""
    signature: str
    public_key: str
    hash: str

    @property
    def digest(self) -> bytes:
        return bytes.fromhex(self.hash)


class SigningOrchestrator:
    """Sign a bundle directory exactly as it will ship.

    The bundle passed in must already contain the placeholder manifest and
    the public key file, and must not contain the private key. Instances hold
    no state between calls.
    """

    def __init__(self, hasher: Optional[TreeHasher] = None, async_hasher: Optional[AsyncTreeHasher] = None):
        self.hasher = hasher or hash_tree
        self.async_hasher = async_hasher or hash_tree_async

    def sign(self, bundle_path: PathLike, private_key: KeyMaterial) -> SignatureResult:
        # Key errors surface before any bundle bytes are read
        key = load_private_key(private_key)
        digest = self.hasher(bundle_path)
        return self._sign(key, digest)

    async def sign_async(self, bundle_path: PathLike, private_key: KeyMaterial) -> SignatureResult:
        key = load_private_key(private_key)
        digest = await self.async_hasher(bundle_path)
        return self._sign(key, digest)

    def sign_digest(self, private_key: KeyMaterial, digest: bytes) -> SignatureResult:
        """Sign an already computed content digest (the raw 32 bytes)."""
        return self._sign(load_private_key(private_key), digest)

    @staticmethod
    def _sign(key: Ed25519PrivateKey, digest: bytes) -> SignatureResult:
        result = SignatureResult(
            signature=key.sign(digest).hex(),
            public_key=public_key_bytes(key.public_key()).hex(),
            hash=digest.hex(),
        )
        logger.debug("Signed content hash %s", result.hash)
        return result


__all__ = [
    "SignatureResult",
    "SigningOrchestrator",
]
