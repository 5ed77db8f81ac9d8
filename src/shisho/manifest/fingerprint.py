"""Content fingerprints for single files and whole directory trees."""

from __future__ import annotations

import errno
import hashlib
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from shisho.manifest.models import ManifestEntry

DEFAULT_CHUNK_BYTES = 1024 * 128
SYMLINK_POLICIES = ("follow", "skip", "error")


@dataclass(slots=True, frozen=True)
class _TreeFile:
    """File found during traversal, prior to hashing."""

    relative_path: str
    full_path: Path


def fingerprint_file(path: Path, chunk_bytes: int = DEFAULT_CHUNK_BYTES) -> str:
    """Compute the MD5 hex digest of a file in chunked reads."""
    digest = hashlib.md5(usedforsecurity=False)
    with path.open("rb") as handle:
        while True:
            chunk = handle.read(chunk_bytes)
            if not chunk:
                break
            digest.update(chunk)
    return digest.hexdigest()


def fingerprint_tree(
    root: Path,
    *,
    workers: int = 1,
    chunk_bytes: int = DEFAULT_CHUNK_BYTES,
    symlinks: str = "follow",
) -> list[ManifestEntry]:
    """Fingerprint every file under root in deterministic depth-first order.

    Directories are descended but never recorded. Paths are relative to root
    and always use ``/`` separators. With ``workers > 1`` files are hashed on a
    thread pool; the result order is the traversal order either way.
    """
    if symlinks not in SYMLINK_POLICIES:
        raise ValueError(f"Unknown symlink policy: {symlinks!r}")
    base = Path(root)
    files: list[_TreeFile] = []
    _collect_files(
        directory=base,
        prefix="",
        symlinks=symlinks,
        ancestors=(os.path.realpath(base),),
        output=files,
    )

    def _hash(item: _TreeFile) -> str:
        return fingerprint_file(item.full_path, chunk_bytes=chunk_bytes)

    if workers > 1 and len(files) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            digests = list(pool.map(_hash, files))
    else:
        digests = [_hash(item) for item in files]

    return [
        ManifestEntry(path=item.relative_path, fingerprint=digest)
        for item, digest in zip(files, digests)
    ]


def _collect_files(
    *,
    directory: Path,
    prefix: str,
    symlinks: str,
    ancestors: tuple[str, ...],
    output: list[_TreeFile],
) -> None:
    """Walk one directory level sorted by name, expanding subdirectories in place."""
    with os.scandir(directory) as entries:
        ordered_entries = sorted(entries, key=lambda item: item.name)
    for entry in ordered_entries:
        relative = f"{prefix}{entry.name}"
        full_path = Path(entry.path)
        if entry.is_symlink():
            if symlinks == "skip":
                continue
            if symlinks == "error":
                raise OSError(errno.EPERM, "Symlinks are not allowed in tracked data", entry.path)
            if not full_path.exists():
                raise FileNotFoundError(errno.ENOENT, "Dangling symlink", entry.path)
        if entry.is_dir():
            real = os.path.realpath(entry.path)
            if real in ancestors:
                raise OSError(errno.ELOOP, "Symlink loop", entry.path)
            _collect_files(
                directory=full_path,
                prefix=f"{relative}/",
                symlinks=symlinks,
                ancestors=(*ancestors, real),
                output=output,
            )
            continue
        if entry.is_file():
            output.append(_TreeFile(relative_path=relative, full_path=full_path))
