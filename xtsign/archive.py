"""
Archive I/O for ``.xt`` artifacts.

The signing core only decides which bytes ship; writing the archive is
delegated to an ArchiveWriter. The default writer emits a zip with entries
in sorted order.
"""

from __future__ import annotations

import logging
import os
import zipfile
from pathlib import Path, PurePosixPath
from typing import Protocol, Union

from .crypto.hashing import list_files
from .errors import ArchiveWriteError, ArtifactFormatError, FileReadError

logger = logging.getLogger(__name__)

EXTENSION_FILE_SUFFIX = ".xt"

PathLike = Union[str, os.PathLike]


class ArchiveWriter(Protocol):
    """Turns a staged directory into an artifact file."""

    def write(self, source_dir: PathLike, output_path: PathLike) -> Path:
        ...  # pragma: no cover - interface placeholder


class ZipArchiveWriter:
    """Deflate-compressed zip writer."""

    def __init__(self, compresslevel: int = 9):
        self.compresslevel = compresslevel

    def write(self, source_dir: PathLike, output_path: PathLike) -> Path:
        src = Path(source_dir)
        out = Path(output_path)
        try:
            files = list_files(src)
            out.parent.mkdir(parents=True, exist_ok=True)
            with zipfile.ZipFile(out, "w", zipfile.ZIP_DEFLATED, compresslevel=self.compresslevel) as z:
                for rel in files:
                    z.write(src / rel, arcname=rel)
        except (OSError, ValueError, zipfile.BadZipFile, FileReadError) as e:
            if out.is_file():
                out.unlink()
            raise ArchiveWriteError(f"failed to write archive {out}: {e}") from e
        logger.info("Wrote %s (%d files, %d bytes)", out, len(files), out.stat().st_size)
        return out


def _safe_member_path(name: str) -> PurePosixPath:
    member = PurePosixPath(name)
    if member.is_absolute() or ".." in member.parts or "\\" in name:
        raise ArtifactFormatError(f"unsafe path in archive: {name!r}")
    return member


def extract_archive(archive_path: PathLike, dest_dir: PathLike) -> Path:
    """Extract an artifact into dest_dir, rejecting path traversal entries."""
    dest = Path(dest_dir)
    try:
        with zipfile.ZipFile(archive_path, "r") as z:
            for info in z.infolist():
                member = _safe_member_path(info.filename)
                if info.is_dir():
                    continue
                target = dest.joinpath(*member.parts)
                target.parent.mkdir(parents=True, exist_ok=True)
                with z.open(info) as src, open(target, "wb") as dst:
                    dst.write(src.read())
    except zipfile.BadZipFile as e:
        raise ArtifactFormatError(f"not a valid artifact archive: {archive_path}") from e
    except OSError as e:
        raise ArtifactFormatError(f"cannot read artifact {archive_path}: {e}") from e
    return dest


__all__ = [
    "EXTENSION_FILE_SUFFIX",
    "ArchiveWriter",
    "ZipArchiveWriter",
    "extract_archive",
]
