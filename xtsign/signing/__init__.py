"""
Package signing composes the crypto and manifest layers into the
sign-and-package pipeline and its mirror-image verifier.
"""

from .orchestrator import (
    SignatureResult,
    SigningOrchestrator,
)

from .staging import (
    BACKUP_SUFFIX,
    StagedTree,
)

from .packager import (
    PackagingStage,
    PackageResult,
    Packager,
)

from .verifier import (
    VerificationStatus,
    VerificationResult,
    Verifier,
)

__all__ = [
    'SignatureResult',
    'SigningOrchestrator',
    'BACKUP_SUFFIX',
    'StagedTree',
    'PackagingStage',
    'PackageResult',
    'Packager',
    'VerificationStatus',
    'VerificationResult',
    'Verifier',
]
