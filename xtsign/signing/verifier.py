"""
Artifact verification, mirroring the signing pipeline.

The verifier reads the finalized manifest, puts it back into its
placeholder form (empty signature, canonical key order), hashes the tree
exactly as the packager did and checks the Ed25519 signature.

An invalid signature or a hash mismatch is an expected outcome and is
reported through VerificationResult. Only artifacts that cannot be parsed
at all (no manifest, bad JSON, malformed key or signature encoding) raise.
"""

import logging
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from cryptography.exceptions import InvalidSignature

from ..archive import extract_archive
from ..config import DEFAULT_EXTENSION_DIR
from ..crypto.hashing import PathLike, hash_tree
from ..crypto.keys import SIGNATURE_SIZE, KeyMaterial, load_public_key
from ..errors import ArtifactFormatError, KeyImportError
from ..manifest.canonical import placeholder_manifest_bytes
from ..manifest.document import MANIFEST_FILENAME, load_manifest
from ..monitoring.metrics import MetricsRegistry, get_registry
from .orchestrator import TreeHasher
from .staging import StagedTree

logger = logging.getLogger(__name__)


class VerificationStatus(str, Enum):
    VALID = "valid"
    SIGNATURE_INVALID = "signature_invalid"
    HASH_MISMATCH = "hash_mismatch"


@dataclass
class VerificationResult:
    status: VerificationStatus
    public_key: str
    hash: str
    manifest: Dict[str, Any]

    @property
    def valid(self) -> bool:
        return self.status == VerificationStatus.VALID


class Verifier:
    """Verify extracted or archived extension artifacts."""

    def __init__(
        self,
        extension_dir: str = DEFAULT_EXTENSION_DIR,
        hasher: Optional[TreeHasher] = None,
        metrics: Optional[MetricsRegistry] = None,
    ):
        self.extension_dir = Path(extension_dir).as_posix()
        self.hasher = hasher or hash_tree
        self.metrics = metrics or get_registry()

    def verify_directory(
        self,
        root: PathLike,
        public_key: Optional[KeyMaterial] = None,
        expected_hash: Optional[str] = None,
    ) -> VerificationResult:
        """Verify an extracted artifact tree.

        Args:
            root: Directory holding the extracted artifact
            public_key: Trusted key to check against instead of the embedded one
            expected_hash: Hex content hash the caller expects (e.g. from a listing)
        Returns:
            VerificationResult; check ``.valid``.
        """
        root_path = Path(root)
        manifest_rel = f"{self.extension_dir}/{MANIFEST_FILENAME}"
        doc = load_manifest(root_path / manifest_rel).document

        embedded_key = doc.get("public_key") or ""
        signature_hex = doc.get("signature") or ""
        if not signature_hex:
            raise ArtifactFormatError("artifact manifest carries no signature")
        try:
            signature = bytes.fromhex(signature_hex)
        except ValueError as e:
            raise ArtifactFormatError("artifact signature is not valid hex") from e
        if len(signature) != SIGNATURE_SIZE:
            raise ArtifactFormatError(f"artifact signature must be {SIGNATURE_SIZE} bytes, got {len(signature)}")
        try:
            embedded = load_public_key(embedded_key)
        except KeyImportError as e:
            raise ArtifactFormatError(f"artifact public key is malformed: {e}") from e

        trusted = embedded if public_key is None else load_public_key(public_key)

        # Rebuild the tree as it was when the hash was taken
        with StagedTree(skip_backups=False) as staged:
            staged.add_tree(root_path)
            staged.write_bytes(manifest_rel, placeholder_manifest_bytes(doc, embedded_key))
            digest = self.hasher(staged.root)

        if expected_hash is not None and digest.hex() != expected_hash.strip().lower():
            status = VerificationStatus.HASH_MISMATCH
        else:
            try:
                trusted.verify(signature, digest)
                status = VerificationStatus.VALID
            except InvalidSignature:
                status = VerificationStatus.SIGNATURE_INVALID

        self.metrics.observe_verification(status.value)
        if status == VerificationStatus.VALID:
            logger.info("Artifact %s verified (content hash %s)", root_path, digest.hex())
        else:
            logger.warning("Artifact %s rejected: %s", root_path, status.value)

        return VerificationResult(status=status, public_key=embedded_key, hash=digest.hex(), manifest=doc)

    def verify_archive(
        self,
        archive_path: PathLike,
        public_key: Optional[KeyMaterial] = None,
        expected_hash: Optional[str] = None,
    ) -> VerificationResult:
        """Extract an artifact to a temp dir and verify it."""
        with tempfile.TemporaryDirectory(prefix="xtsign-verify-") as tmp:
            extract_archive(archive_path, tmp)
            return self.verify_directory(tmp, public_key=public_key, expected_hash=expected_hash)


__all__ = [
    "VerificationStatus",
    "VerificationResult",
    "Verifier",
]
