"""Metadata area and marker files of a tracked directory."""

from __future__ import annotations

import os
from pathlib import Path

from shisho.manifest.codec import decode, encode
from shisho.manifest.errors import FormatError, MissingMarkerError, NotTrackedError
from shisho.manifest.models import ManifestEntry, TrackedState

METADATA_DIR_NAME = "__SHISHO__"
DATA_DIR_NAME = "data"
MANIFEST_FILE_NAME = "md5.txt"
IDENTITY_MARKER_PREFIX = "id__"
VERSION_MARKER_PREFIX = "ver__"

_FORBIDDEN_IDENTITY_CHARS = ("/", "\\", "\x00", "\n", "\r")


def metadata_dir(directory: Path) -> Path:
    return Path(directory) / METADATA_DIR_NAME


def manifest_path(directory: Path) -> Path:
    return metadata_dir(directory) / MANIFEST_FILE_NAME


def is_tracked(directory: Path) -> bool:
    """Return True when the metadata subdirectory exists directly under directory."""
    return metadata_dir(directory).is_dir()


def validate_identity(identity: str) -> str:
    """Reject identities that cannot be embedded in a marker file name."""
    if not identity:
        raise ValueError("Identity must not be empty.")
    if identity in (".", ".."):
        raise ValueError(f"Identity {identity!r} is reserved.")
    if any(char in identity for char in _FORBIDDEN_IDENTITY_CHARS):
        raise ValueError(f"Identity {identity!r} contains a path separator or control character.")
    return identity


def read_identity(directory: Path) -> str:
    """Return the identity embedded in the ``id__<identity>`` marker name."""
    _require_tracked(directory)
    names = _marker_names(directory, IDENTITY_MARKER_PREFIX)
    if not names:
        raise MissingMarkerError(str(directory), "identity")
    if len(names) > 1:
        raise FormatError(f"Multiple identity markers: {', '.join(names)}")
    return names[0][len(IDENTITY_MARKER_PREFIX) :]


def read_version(directory: Path) -> int:
    """Return the number in the ``ver__<n>`` marker name.

    An interrupted update can leave the previous marker behind; the highest
    version is the one written last.
    """
    _require_tracked(directory)
    names = _marker_names(directory, VERSION_MARKER_PREFIX)
    if not names:
        raise MissingMarkerError(str(directory), "version")
    return max(_parse_version(name) for name in names)


def read_manifest(directory: Path) -> list[ManifestEntry]:
    """Read and decode the stored manifest."""
    _require_tracked(directory)
    with manifest_path(directory).open("r", encoding="utf-8", newline="") as handle:
        return decode(handle.read())


def write_manifest(directory: Path, entries: list[ManifestEntry]) -> None:
    """Encode and overwrite the stored manifest; prior content is not kept."""
    path = manifest_path(directory)
    payload = encode(entries)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8", newline="") as handle:
        handle.write(payload)
    tmp.replace(path)


def read_state(directory: Path) -> TrackedState:
    """Load identity, version and manifest size in one pass."""
    return TrackedState(
        identity=read_identity(directory),
        version=read_version(directory),
        entry_count=len(read_manifest(directory)),
    )


def write_identity_marker(directory: Path, identity: str) -> Path:
    marker = Path(directory) / f"{IDENTITY_MARKER_PREFIX}{validate_identity(identity)}"
    marker.write_bytes(b"")
    return marker


def write_version_marker(directory: Path, version: int) -> Path:
    if version < 0:
        raise ValueError("Version must be non-negative.")
    marker = Path(directory) / f"{VERSION_MARKER_PREFIX}{version}"
    marker.write_bytes(b"")
    return marker


def bump_version(directory: Path) -> tuple[int, int]:
    """Write ``ver__<n+1>`` then remove every older version marker.

    Write-then-delete, not transactional. Returns ``(old, new)``.
    """
    current = read_version(directory)
    new_version = current + 1
    write_version_marker(directory, new_version)
    for name in _marker_names(directory, VERSION_MARKER_PREFIX):
        if _parse_version(name) < new_version:
            (Path(directory) / name).unlink()
    return current, new_version


def _require_tracked(directory: Path) -> None:
    if not is_tracked(directory):
        raise NotTrackedError(str(directory))


def _marker_names(directory: Path, prefix: str) -> list[str]:
    with os.scandir(directory) as entries:
        return sorted(
            entry.name
            for entry in entries
            if entry.name.startswith(prefix) and not entry.is_dir(follow_symlinks=False)
        )


def _parse_version(name: str) -> int:
    suffix = name[len(VERSION_MARKER_PREFIX) :]
    if not suffix.isdigit() or not suffix.isascii():
        raise FormatError(f"Version marker is not a decimal number: {name}")
    return int(suffix)
