"""Manifest model, fingerprinting, codec and on-disk store."""

from .codec import decode, diff_manifests, encode, fingerprint_map, manifests_equal
from .errors import FormatError, MissingMarkerError, NotTrackedError, ShishoError
from .fingerprint import DEFAULT_CHUNK_BYTES, SYMLINK_POLICIES, fingerprint_file, fingerprint_tree
from .models import ManifestDelta, ManifestEntry, TrackedState
from .store import (
    DATA_DIR_NAME,
    METADATA_DIR_NAME,
    bump_version,
    is_tracked,
    read_identity,
    read_manifest,
    read_state,
    read_version,
    validate_identity,
    write_identity_marker,
    write_manifest,
    write_version_marker,
)

__all__ = [
    "DATA_DIR_NAME",
    "DEFAULT_CHUNK_BYTES",
    "FormatError",
    "METADATA_DIR_NAME",
    "ManifestDelta",
    "ManifestEntry",
    "MissingMarkerError",
    "NotTrackedError",
    "SYMLINK_POLICIES",
    "ShishoError",
    "TrackedState",
    "bump_version",
    "decode",
    "diff_manifests",
    "encode",
    "fingerprint_file",
    "fingerprint_map",
    "fingerprint_tree",
    "is_tracked",
    "manifests_equal",
    "read_identity",
    "read_manifest",
    "read_state",
    "read_version",
    "validate_identity",
    "write_identity_marker",
    "write_manifest",
    "write_version_marker",
]
