"""
xtsign

Signed, tamper-evident packaging for extension bundles - Python implementation
"""

__version__ = "0.1.0"

from .errors import (
    XTSignError,
    KeyImportError,
    FileReadError,
    ManifestMissingError,
    ManifestFormatError,
    ArchiveWriteError,
    ArtifactFormatError,
    SecretLeakError,
    ConfigError,
)
from .config import ProjectConfig, load_config
from .crypto import KeyPair, generate_keypair, derive_public_key, hash_tree, hash_tree_async
from .manifest import canonicalize, with_placeholder_signature
from .archive import ArchiveWriter, ZipArchiveWriter, EXTENSION_FILE_SUFFIX
from .signing import (
    SigningOrchestrator,
    SignatureResult,
    Packager,
    PackageResult,
    PackagingStage,
    Verifier,
    VerificationResult,
    VerificationStatus,
)

__all__ = [
    "XTSignError",
    "KeyImportError",
    "FileReadError",
    "ManifestMissingError",
    "ManifestFormatError",
    "ArchiveWriteError",
    "ArtifactFormatError",
    "SecretLeakError",
    "ConfigError",
    "ProjectConfig",
    "load_config",
    "KeyPair",
    "generate_keypair",
    "derive_public_key",
    "hash_tree",
    "hash_tree_async",
    "canonicalize",
    "with_placeholder_signature",
    "ArchiveWriter",
    "ZipArchiveWriter",
    "EXTENSION_FILE_SUFFIX",
    "SigningOrchestrator",
    "SignatureResult",
    "Packager",
    "PackageResult",
    "PackagingStage",
    "Verifier",
    "VerificationResult",
    "VerificationStatus",
]
