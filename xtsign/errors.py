"""Exception taxonomy for xtsign.

Packaging is all-or-nothing: every failure surfaces as one of these errors
and the pipeline aborts. Verification outcomes (invalid signature, hash
mismatch) are NOT exceptions; see ``xtsign.signing.verifier``.
"""

from __future__ import annotations

from typing import List, Optional


class XTSignError(Exception):
    """Base class for all xtsign errors."""


class KeyImportError(XTSignError):
    """Key material is malformed, of the wrong length or wrong encoding."""


class FileReadError(XTSignError):
    """A bundle file vanished or became unreadable while hashing."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ManifestMissingError(XTSignError):
    """No manifest at the canonical path."""


class ManifestFormatError(XTSignError):
    """Manifest is not a JSON object or fails validation."""

    def __init__(self, message: str, problems: Optional[List[str]] = None):
        super().__init__(message)
        self.problems = problems or []


class ArchiveWriteError(XTSignError):
    """The archive writer failed to emit the artifact."""


class ArtifactFormatError(XTSignError):
    """An artifact cannot be read or parsed for verification."""


class SecretLeakError(XTSignError):
    """Private key material was found in the staged tree."""


class ConfigError(XTSignError):
    """Project configuration file could not be parsed."""


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
]
