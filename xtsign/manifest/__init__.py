"""
Package manifest handles the extension metadata document: loading and
validation, and the canonical placeholder form that the content hash covers.
"""

from .canonical import (
    canonicalize,
    with_placeholder_signature,
    with_signature,
    dumps,
    placeholder_manifest_bytes,
)

from .document import (
    MANIFEST_FILENAME,
    TableGrant,
    DependencyDeclaration,
    ManifestFile,
    load_manifest,
    validate_manifest,
    parse_dependencies,
    artifact_file_name,
)

__all__ = [
    'canonicalize',
    'with_placeholder_signature',
    'with_signature',
    'dumps',
    'placeholder_manifest_bytes',
    'MANIFEST_FILENAME',
    'TableGrant',
    'DependencyDeclaration',
    'ManifestFile',
    'load_manifest',
    'validate_manifest',
    'parse_dependencies',
    'artifact_file_name',
]
