"""Init, check, update and compare workflows for tracked directories."""

from __future__ import annotations

import errno
import os
import secrets
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from pathlib import Path

from shisho.config import ShishoConfig, default_config
from shisho.logging import AUDIT_FILE_NAME, AuditEvent, JsonlAuditLogger, utc_timestamp
from shisho.manifest import (
    DATA_DIR_NAME,
    METADATA_DIR_NAME,
    ManifestEntry,
    MissingMarkerError,
    bump_version,
    diff_manifests,
    encode,
    fingerprint_tree,
    is_tracked,
    manifests_equal,
    read_identity,
    read_manifest,
    read_state,
    read_version,
    validate_identity,
    write_identity_marker,
    write_manifest,
    write_version_marker,
)

STATUS_INITIALIZED = "initialized"
STATUS_MATCH = "match"
STATUS_MISMATCH = "mismatch"
STATUS_UPDATED = "updated"
STATUS_OK = "ok"
STATUS_NOT_TRACKED = "not_tracked"
STATUS_INVALID = "invalid"
STATUS_ALREADY_INITIALIZED = "already_initialized"
STATUS_ABORTED = "aborted"
STATUS_IDENTITY_MISMATCH = "identity_mismatch"
STATUS_VERSION_MISMATCH = "version_mismatch"
STATUS_MANIFEST_MISMATCH = "manifest_mismatch"
STATUS_MISSING_MARKER = "missing_marker"

SUCCESS_STATUSES = frozenset({STATUS_INITIALIZED, STATUS_MATCH, STATUS_UPDATED, STATUS_OK})

STAGING_PREFIX = "tmp_"

ConfirmCallback = Callable[[list[str]], bool]


@dataclass(slots=True, frozen=True)
class OperationResult:
    """Outcome of one workflow, rendered by the CLI as a status line."""

    status: str
    message: str
    details: dict[str, object] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status in SUCCESS_STATUSES


def build_move_preview(names: list[str], limit: int) -> list[str]:
    """List the first ``limit`` entries and a count of the rest."""
    lines = [f"- {name}" for name in names[:limit]]
    if len(names) > limit:
        lines.append(f"...and {len(names) - limit} more")
    return lines


def choose_staging_name(existing: set[str]) -> str:
    """Pick a random ``tmp_<hex>`` name that collides with no existing entry."""
    while True:
        candidate = f"{STAGING_PREFIX}{secrets.token_hex(4)}"
        if candidate not in existing:
            return candidate


def init_directory(
    target: Path,
    identity: str,
    *,
    confirm: ConfirmCallback,
    config: ShishoConfig | None = None,
) -> OperationResult:
    """Move the directory's contents into ``data/`` and record version 0.

    Refuses without side effects when the directory is already tracked or the
    caller declines the move preview. The tree is fingerprinted and encoded
    before anything moves, so unreadable files or unencodable paths abort with
    the directory untouched. Failures during the move propagate and are not
    rolled back.
    """
    settings = config or default_config()
    validate_identity(identity)
    target = Path(target)
    if not target.exists():
        raise FileNotFoundError(errno.ENOENT, "No such directory", str(target))
    if not target.is_dir():
        raise NotADirectoryError(errno.ENOTDIR, "Not a directory", str(target))
    if is_tracked(target):
        return OperationResult(
            status=STATUS_ALREADY_INITIALIZED,
            message=(
                f"`{METADATA_DIR_NAME}` directory already exists. Aborted. "
                f"If you want to reinitialize, delete the `{METADATA_DIR_NAME}` directory first."
            ),
        )

    names = sorted(os.listdir(target))
    preview = build_move_preview(names, settings.init.preview_entries)
    if not confirm(preview):
        return OperationResult(status=STATUS_ABORTED, message="Aborted")

    # Paths relative to target equal paths relative to data/ after the move.
    entries = _fingerprint_tree(target, settings)
    encode(entries)

    staging = target / choose_staging_name(set(names))
    staging.mkdir()
    for name in names:
        (target / name).rename(staging / name)
    staging.rename(target / DATA_DIR_NAME)

    (target / METADATA_DIR_NAME).mkdir()
    write_identity_marker(target, identity)
    write_version_marker(target, 0)
    write_manifest(target, entries)

    details: dict[str, object] = {
        "identity": identity,
        "version": 0,
        "moved_entries": len(names),
        "entry_count": len(entries),
    }
    _record_event(target, settings, "init", STATUS_INITIALIZED, details)
    return OperationResult(
        status=STATUS_INITIALIZED,
        message=f"Fingerprints computed and saved to `{METADATA_DIR_NAME}`",
        details=details,
    )


def check_directory(target: Path, *, config: ShishoConfig | None = None) -> OperationResult:
    """Recompute the tree fingerprint and compare it with the stored manifest.

    Read-only: neither markers nor the manifest nor the audit log are touched.
    """
    settings = config or default_config()
    target = Path(target)
    if not is_tracked(target):
        return _not_tracked(target)
    current = _fingerprint_data(target, settings)
    stored = read_manifest(target)
    delta = diff_manifests(stored, current)
    details: dict[str, object] = {"entry_count": len(current), "delta": asdict(delta)}
    if manifests_equal(current, stored):
        return OperationResult(
            status=STATUS_MATCH, message="All files are the same", details=details
        )
    return OperationResult(status=STATUS_MISMATCH, message="Files are different", details=details)


def update_directory(target: Path, *, config: ShishoConfig | None = None) -> OperationResult:
    """Advance the version by one and rewrite the manifest from the current tree.

    The version advances even when the content is unchanged.
    """
    settings = config or default_config()
    target = Path(target)
    if not is_tracked(target):
        return _not_tracked(target)
    try:
        read_version(target)
    except MissingMarkerError as error:
        return OperationResult(
            status=STATUS_MISSING_MARKER,
            message=f"No {error.marker} marker found. Aborted.",
        )

    old_version, new_version = bump_version(target)
    entries = _fingerprint_data(target, settings)
    write_manifest(target, entries)

    details: dict[str, object] = {
        "previous_version": old_version,
        "version": new_version,
        "entry_count": len(entries),
    }
    _record_event(target, settings, "update", STATUS_UPDATED, details)
    return OperationResult(
        status=STATUS_UPDATED,
        message=f"Updated to version {new_version}",
        details=details,
    )


def compare_directories(first: Path, second: Path) -> OperationResult:
    """Compare identity, version, then stored manifests, stopping at the first difference."""
    first = Path(first)
    second = Path(second)
    if not is_tracked(first) or not is_tracked(second):
        return OperationResult(status=STATUS_INVALID, message="Not a valid shisho directory")

    first_identity = read_identity(first)
    second_identity = read_identity(second)
    if first_identity != second_identity:
        return OperationResult(
            status=STATUS_IDENTITY_MISMATCH,
            message="ID does not match",
            details={"identities": [first_identity, second_identity]},
        )

    first_version = read_version(first)
    second_version = read_version(second)
    if first_version != second_version:
        return OperationResult(
            status=STATUS_VERSION_MISMATCH,
            message="Version does not match",
            details={"versions": [first_version, second_version]},
        )

    first_manifest = read_manifest(first)
    second_manifest = read_manifest(second)
    if not manifests_equal(first_manifest, second_manifest):
        return OperationResult(
            status=STATUS_MANIFEST_MISMATCH,
            message="MD5 does not match",
            details={"delta": asdict(diff_manifests(first_manifest, second_manifest))},
        )
    return OperationResult(
        status=STATUS_MATCH,
        message="All files are the same",
        details={"identity": first_identity, "version": first_version},
    )


def status_directory(
    target: Path, *, history: int = 5, since: str | None = None
) -> OperationResult:
    """Report identity, version, manifest size and recent audit events.

    ``since`` is an ISO-8601 UTC timestamp; older events are left out.
    """
    target = Path(target)
    if not is_tracked(target):
        return _not_tracked(target)
    state = read_state(target)
    logger = JsonlAuditLogger(path=target / METADATA_DIR_NAME / AUDIT_FILE_NAME)
    details: dict[str, object] = {
        **asdict(state),
        "history": logger.events(since=since, limit=history),
    }
    return OperationResult(
        status=STATUS_OK,
        message=f"{state.identity} at version {state.version} ({state.entry_count} files)",
        details=details,
    )


def _fingerprint_data(target: Path, settings: ShishoConfig) -> list[ManifestEntry]:
    return _fingerprint_tree(target / DATA_DIR_NAME, settings)


def _fingerprint_tree(root: Path, settings: ShishoConfig) -> list[ManifestEntry]:
    return fingerprint_tree(
        root,
        workers=settings.hashing.workers,
        chunk_bytes=settings.hashing.chunk_bytes,
        symlinks=settings.hashing.symlinks,
    )


def _not_tracked(target: Path) -> OperationResult:
    return OperationResult(
        status=STATUS_NOT_TRACKED,
        message=f"`{METADATA_DIR_NAME}` directory does not exist in {target}. Aborted.",
    )


def _record_event(
    target: Path,
    settings: ShishoConfig,
    operation: str,
    status: str,
    metadata: dict[str, object],
) -> None:
    if not settings.audit.enabled:
        return
    logger = JsonlAuditLogger(path=target / METADATA_DIR_NAME / AUDIT_FILE_NAME)
    logger.append(
        AuditEvent(
            timestamp=utc_timestamp(),
            operation=operation,
            ok=status in SUCCESS_STATUSES,
            status=status,
            metadata=dict(metadata),
        )
    )
