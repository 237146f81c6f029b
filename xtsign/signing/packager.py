"""
Sign-and-package pipeline for extension bundles.

The pipeline is a fixed linear sequence of stages:

    LOAD_MANIFEST -> DERIVE_KEY -> WRITE_PLACEHOLDER -> STAGE_TREE -> HASH
    -> SIGN -> WRITE_FINAL -> HAND_OFF_TO_ARCHIVER -> RESTORE_ORIGINAL

Everything that ships is first copied into a private staging directory; the
hash is computed over that copy and the archive is written from it, so the
signed bytes and the shipped bytes are the same bytes. The developer's
manifest is never edited. RESTORE_ORIGINAL still runs on every exit and puts
the manifest back to its original bytes should anything have touched it;
a ``manifest.json.bak`` copy covers interrupted runs.

Two runs against the same manifest path are not synchronized. Callers must
serialize packaging per extension.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from cryptography.hazmat.primitives import serialization

from ..archive import EXTENSION_FILE_SUFFIX, ArchiveWriter, ZipArchiveWriter
from ..config import CONFIG_FILENAME, ProjectConfig, load_config
from ..crypto.hashing import PathLike
from ..crypto.keys import (
    PRIVATE_KEY_FILENAME,
    PUBLIC_KEY_FILENAME,
    KeyMaterial,
    derive_public_key,
    load_private_key,
)
from ..errors import FileReadError, KeyImportError
from ..manifest.canonical import canonicalize, dumps, placeholder_manifest_bytes, with_signature
from ..manifest.document import MANIFEST_FILENAME, ManifestFile, artifact_file_name, load_manifest
from ..monitoring.metrics import MetricsRegistry, get_registry
from .orchestrator import SigningOrchestrator
from .staging import BACKUP_SUFFIX, StagedTree

logger = logging.getLogger(__name__)


class PackagingStage(str, Enum):
    LOAD_MANIFEST = "load_manifest"
    DERIVE_KEY = "derive_key"
    WRITE_PLACEHOLDER = "write_placeholder"
    STAGE_TREE = "stage_tree"
    HASH = "hash"
    SIGN = "sign"
    WRITE_FINAL = "write_final"
    HAND_OFF_TO_ARCHIVER = "hand_off_to_archiver"
    RESTORE_ORIGINAL = "restore_original"


@dataclass
class PackageResult:
    output_path: Path
    signature: str
    public_key: str
    hash: str
    manifest: Dict[str, Any]


def _secret_needles(private_key: KeyMaterial) -> List[bytes]:
    """Byte strings that must never appear in a staged file."""
    seed = load_private_key(private_key).private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )
    needles = [seed, seed.hex().encode("ascii"), seed.hex().upper().encode("ascii")]
    if isinstance(private_key, str):
        needles.append(private_key.strip().encode("utf-8"))
    return needles


class Packager:
    """Run the sign-and-package pipeline for one project.

    All collaborators are injected; nothing is kept between package() calls
    besides the stage of the current/last run.
    """

    def __init__(
        self,
        config: Optional[ProjectConfig] = None,
        archiver: Optional[ArchiveWriter] = None,
        orchestrator: Optional[SigningOrchestrator] = None,
        metrics: Optional[MetricsRegistry] = None,
    ):
        self.config = config or load_config()
        self.archiver = archiver or ZipArchiveWriter()
        self.orchestrator = orchestrator or SigningOrchestrator()
        self.metrics = metrics or get_registry()
        self.stage: Optional[PackagingStage] = None

    def _enter(self, stage: PackagingStage) -> None:
        self.stage = stage
        logger.debug("Packaging stage: %s", stage.value)

    @property
    def _extension_rel(self) -> str:
        return Path(self.config.extension_dir).as_posix()

    def package(
        self,
        bundle_path: PathLike,
        private_key: KeyMaterial,
        output_path: Optional[PathLike] = None,
        private_key_path: Optional[PathLike] = None,
    ) -> PackageResult:
        """Sign bundle_path and write the artifact.

        private_key_path, when given, is excluded from staging in addition
        to the configured private key location.
        """
        bundle = Path(bundle_path)
        if not bundle.is_dir():
            raise FileReadError(f"bundle path is not a directory: {bundle}", path=str(bundle))

        excluded = [self.config.resolved_private_key_path()]
        if private_key_path is not None:
            excluded.append(Path(private_key_path))

        manifest_file: Optional[ManifestFile] = None
        backup_path: Optional[Path] = None
        output: Optional[Path] = None
        archive_started = False
        staged = StagedTree(excluded=excluded)

        try:
            self._enter(PackagingStage.LOAD_MANIFEST)
            manifest_file = load_manifest(self.config.manifest_path, self.config.root_dir)
            backup_path = self._write_backup(manifest_file)

            self._enter(PackagingStage.DERIVE_KEY)
            public_key_hex = derive_public_key(private_key).hex()

            self._enter(PackagingStage.WRITE_PLACEHOLDER)
            placeholder = placeholder_manifest_bytes(manifest_file.document, public_key_hex)

            self._enter(PackagingStage.STAGE_TREE)
            staged.open()
            self._stage(staged, bundle, placeholder, public_key_hex)
            staged.assert_no_secret(*_secret_needles(private_key))

            self._enter(PackagingStage.HASH)
            # sign() hashes the staged tree, then signs the digest
            result = self.orchestrator.sign(staged.root, private_key)

            self._enter(PackagingStage.SIGN)
            if result.public_key != public_key_hex:
                raise KeyImportError("signing produced a public key that does not match the private key")

            self._enter(PackagingStage.WRITE_FINAL)
            final_doc = canonicalize(with_signature(manifest_file.document, result.public_key, result.signature))
            staged.write_bytes(f"{self._extension_rel}/{MANIFEST_FILENAME}", dumps(final_doc))

            self._enter(PackagingStage.HAND_OFF_TO_ARCHIVER)
            if output_path is not None:
                output = Path(output_path)
            else:
                output = self.config.root_dir / artifact_file_name(manifest_file.document, EXTENSION_FILE_SUFFIX)
            archive_started = True
            self.archiver.write(staged.root, output)
        except Exception:
            logger.error("Packaging failed during %s", self.stage.value)
            self.metrics.observe_failure(self.stage.value)
            if archive_started and output is not None:
                self._remove_partial(output)
            raise
        finally:
            staged.cleanup()
            self._enter(PackagingStage.RESTORE_ORIGINAL)
            if manifest_file is not None:
                self._restore(manifest_file, backup_path)

        self.metrics.observe_package()
        logger.info("Extension packaged: %s (content hash %s)", output, result.hash)
        return PackageResult(
            output_path=output,
            signature=result.signature,
            public_key=result.public_key,
            hash=result.hash,
            manifest=final_doc,
        )

    def _stage(self, staged: StagedTree, bundle: Path, placeholder: bytes, public_key_hex: str) -> None:
        ext_rel = self._extension_rel
        count = staged.add_tree(bundle)

        metadata_dir = self.config.metadata_dir
        if metadata_dir.is_dir():
            count += staged.add_tree(
                metadata_dir,
                ext_rel,
                skip=(MANIFEST_FILENAME, PRIVATE_KEY_FILENAME),
                skip_hidden=True,
            )

        public_key_path = self.config.resolved_public_key_path()
        staged_public_key = f"{ext_rel}/{PUBLIC_KEY_FILENAME}"
        if public_key_path.is_file():
            on_disk = public_key_path.read_text(encoding="utf-8").strip().lower()
            if on_disk != public_key_hex:
                raise KeyImportError(f"{public_key_path} does not match the private key")
            staged.add_file(public_key_path, staged_public_key)
        else:
            logger.info("No public key file at %s, shipping the derived key", public_key_path)
            staged.write_bytes(staged_public_key, public_key_hex.encode("ascii"))

        if self.config.include_project_config and self.config.config_path.is_file():
            staged.add_file(self.config.config_path, CONFIG_FILENAME)

        staged.write_bytes(f"{ext_rel}/{MANIFEST_FILENAME}", placeholder)
        logger.debug("Staged %d files into %s", count, staged.root)

    @staticmethod
    def _write_backup(manifest_file: ManifestFile) -> Optional[Path]:
        backup = manifest_file.path.with_name(manifest_file.path.name + BACKUP_SUFFIX)
        try:
            backup.write_bytes(manifest_file.original_bytes)
        except OSError as e:
            logger.warning(f"Could not write manifest backup {backup}: {e}")
            return None
        return backup

    @staticmethod
    def _restore(manifest_file: ManifestFile, backup_path: Optional[Path]) -> None:
        path = manifest_file.path
        try:
            current = path.read_bytes() if path.exists() else None
            if current != manifest_file.original_bytes:
                path.write_bytes(manifest_file.original_bytes)
                logger.warning("Restored manifest %s to its original content", path)
            if backup_path is not None:
                backup_path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Failed to restore manifest {path}: {e} (original kept at {backup_path})")

    @staticmethod
    def _remove_partial(output: Path) -> None:
        try:
            output.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Failed to remove partial artifact {output}: {e}")


__all__ = [
    "PackagingStage",
    "PackageResult",
    "Packager",
]
