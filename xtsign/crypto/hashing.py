"""
Deterministic content hashing of a directory tree.

The digest is SHA-256 over the raw bytes of every regular file, concatenated
with no delimiters, in the byte-wise order of the files' relative POSIX paths.
Traversal order of the filesystem never leaks into the result.
"""

import asyncio
import hashlib
import logging
import os
import stat
from pathlib import Path
from typing import FrozenSet, List, Tuple, Union

from ..errors import FileReadError

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

_CHUNK_SIZE = 1024 * 1024


def _sort_key(rel_path: str) -> bytes:
    return rel_path.encode("utf-8", "surrogateescape")


def _check_root(root: PathLike) -> Path:
    root_path = Path(root)
    if not root_path.is_dir():
        raise FileReadError(f"bundle root is not a directory: {root_path}", path=str(root_path))
    return root_path


def _walk(directory: str, rel: str, ancestors: FrozenSet[Tuple[int, int]], files: List[str]) -> None:
    try:
        names = os.listdir(directory)
    except OSError as e:
        raise FileReadError(f"cannot list bundle directory {rel or '.'}: {e}", path=rel) from e

    for name in names:
        full = os.path.join(directory, name)
        child = f"{rel}/{name}" if rel else name
        try:
            st = os.stat(full)
        except OSError:
            # broken symlink
            continue
        if stat.S_ISDIR(st.st_mode):
            ident = (st.st_dev, st.st_ino)
            if ident in ancestors:
                logger.debug("Skipping symlink cycle at %s", child)
                continue
            _walk(full, child, ancestors | {ident}, files)
        elif stat.S_ISREG(st.st_mode):
            files.append(child)


def list_files(root: PathLike) -> List[str]:
    """Return every regular file under root as sorted relative POSIX paths.

    Directory symlinks are followed. A directory is skipped only when it is
    the same directory (device and inode) as one of its own ancestors, so
    link cycles terminate while aliases of sibling directories are listed
    under every path that reaches them.
    """
    root_path = _check_root(root)
    root_stat = root_path.stat()
    files: List[str] = []
    _walk(str(root_path), "", frozenset({(root_stat.st_dev, root_stat.st_ino)}), files)
    files.sort(key=_sort_key)
    return files


def _read_file(root: Path, rel_path: str) -> bytes:
    try:
        with open(root / rel_path, "rb") as f:
            return f.read()
    except OSError as e:
        raise FileReadError(f"cannot read bundle file {rel_path}: {e}", path=rel_path) from e


def hash_tree(root: PathLike) -> bytes:
    """Compute the SHA-256 content digest of a tree. Returns the raw 32 bytes."""
    root_path = _check_root(root)
    files = list_files(root_path)
    logger.debug("Hashing %d files under %s", len(files), root_path)

    h = hashlib.sha256()
    for rel in files:
        logger.debug("  - %s", rel)
        try:
            with open(root_path / rel, "rb") as f:
                for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
                    h.update(chunk)
        except OSError as e:
            raise FileReadError(f"cannot read bundle file {rel}: {e}", path=rel) from e
    return h.digest()


async def hash_tree_async(root: PathLike, concurrency: int = 8) -> bytes:
    """Like hash_tree, but reads files concurrently in worker threads.

    Contents are fed to the digest in sorted order once all reads finish.
    """
    if concurrency < 1:
        raise ValueError("concurrency must be >= 1")
    root_path = _check_root(root)
    files = await asyncio.to_thread(list_files, root_path)
    semaphore = asyncio.Semaphore(concurrency)

    async def read(rel: str) -> bytes:
        async with semaphore:
            return await asyncio.to_thread(_read_file, root_path, rel)

    contents = await asyncio.gather(*(read(rel) for rel in files))

    h = hashlib.sha256()
    for data in contents:
        h.update(data)
    return h.digest()


__all__ = [
    "list_files",
    "hash_tree",
    "hash_tree_async",
]
