"""
Private staging area for the exact bytes that will be hashed and archived.

Each StagedTree lives in its own temp directory named after the process id
plus a random suffix, so concurrent packaging runs never share one. Copies
are byte-exact; excluded paths (the private key) and ``*.bak`` recovery
files are never staged.
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Iterable, Optional, Set, Union

from ..crypto.hashing import list_files
from ..errors import SecretLeakError

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

BACKUP_SUFFIX = ".bak"


class StagedTree:
    def __init__(self, excluded: Iterable[PathLike] = (), skip_backups: bool = True):
        self._excluded: Set[Path] = {Path(p).resolve() for p in excluded}
        self.skip_backups = skip_backups
        self._root: Optional[Path] = None

    def __enter__(self) -> "StagedTree":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def open(self) -> Path:
        if self._root is None:
            self._root = Path(tempfile.mkdtemp(prefix=f"xtsign-{os.getpid()}-"))
            logger.debug("Created staging directory %s", self._root)
        return self._root

    @property
    def root(self) -> Path:
        if self._root is None:
            raise RuntimeError("staging directory is not open")
        return self._root

    def is_excluded(self, path: PathLike) -> bool:
        p = Path(path)
        if self.skip_backups and p.name.endswith(BACKUP_SUFFIX):
            return True
        return p.resolve() in self._excluded

    def _target(self, dest_rel: str) -> Path:
        target = self.root / dest_rel
        target.parent.mkdir(parents=True, exist_ok=True)
        return target

    def add_file(self, src: PathLike, dest_rel: str) -> bool:
        """Copy one file; returns False if it was excluded."""
        if self.is_excluded(src):
            logger.debug("Not staging excluded file %s", src)
            return False
        shutil.copyfile(src, self._target(dest_rel))
        return True

    def add_tree(
        self,
        src: PathLike,
        dest_rel: str = "",
        skip: Iterable[str] = (),
        skip_hidden: bool = False,
    ) -> int:
        """Copy every regular file under src into dest_rel.

        ``skip`` holds relative paths (POSIX form) under src to leave out.
        With ``skip_hidden``, any path with a segment starting with "." is
        left out as well. Returns the number of files staged.
        """
        src_path = Path(src)
        skipped = set(skip)
        count = 0
        for rel in list_files(src_path):
            if rel in skipped:
                continue
            if skip_hidden and any(part.startswith(".") for part in rel.split("/")):
                continue
            dest = f"{dest_rel}/{rel}" if dest_rel else rel
            if self.add_file(src_path / rel, dest):
                count += 1
        return count

    def write_bytes(self, dest_rel: str, data: bytes) -> Path:
        target = self._target(dest_rel)
        target.write_bytes(data)
        return target

    def assert_no_secret(self, *secrets: bytes) -> None:
        """Fail if any staged file contains any of the given byte strings."""
        needles = [s for s in secrets if s]
        for rel in list_files(self.root):
            data = (self.root / rel).read_bytes()
            for needle in needles:
                if needle in data:
                    raise SecretLeakError(f"private key material found in staged file {rel}")

    def cleanup(self) -> None:
        if self._root is None:
            return
        root, self._root = self._root, None
        try:
            shutil.rmtree(root)
        except OSError as e:
            logger.warning(f"Failed to remove staging directory {root}: {e}")


__all__ = [
    "BACKUP_SUFFIX",
    "StagedTree",
]
