from __future__ import annotations

from pathlib import Path

import pytest

from shisho.manifest import (
    FormatError,
    ManifestEntry,
    MissingMarkerError,
    NotTrackedError,
    bump_version,
    is_tracked,
    read_identity,
    read_manifest,
    read_state,
    read_version,
    write_identity_marker,
    write_manifest,
    write_version_marker,
)


def _tracked(tmp_path: Path) -> Path:
    (tmp_path / "__SHISHO__").mkdir()
    (tmp_path / "data").mkdir()
    return tmp_path


def test_is_tracked_requires_metadata_directory(tmp_path: Path) -> None:
    assert not is_tracked(tmp_path)
    (tmp_path / "__SHISHO__").write_text("", encoding="utf-8")
    assert not is_tracked(tmp_path)
    (tmp_path / "__SHISHO__").unlink()
    (tmp_path / "__SHISHO__").mkdir()
    assert is_tracked(tmp_path)


def test_readers_raise_not_tracked_for_plain_directory(tmp_path: Path) -> None:
    for reader in (read_identity, read_version, read_manifest):
        with pytest.raises(NotTrackedError):
            reader(tmp_path)


def test_identity_and_version_come_from_marker_names(tmp_path: Path) -> None:
    root = _tracked(tmp_path)
    write_identity_marker(root, "proj1")
    write_version_marker(root, 12)

    assert (root / "id__proj1").exists()
    assert (root / "ver__12").exists()
    assert read_identity(root) == "proj1"
    assert read_version(root) == 12


def test_missing_markers_raise(tmp_path: Path) -> None:
    root = _tracked(tmp_path)

    with pytest.raises(MissingMarkerError) as identity_error:
        read_identity(root)
    with pytest.raises(MissingMarkerError) as version_error:
        read_version(root)

    assert identity_error.value.marker == "identity"
    assert version_error.value.marker == "version"


def test_non_numeric_version_marker_is_format_error(tmp_path: Path) -> None:
    root = _tracked(tmp_path)
    (root / "ver__abc").write_bytes(b"")

    with pytest.raises(FormatError):
        read_version(root)


def test_multiple_identity_markers_are_format_error(tmp_path: Path) -> None:
    root = _tracked(tmp_path)
    write_identity_marker(root, "a")
    write_identity_marker(root, "b")

    with pytest.raises(FormatError, match="Multiple identity markers"):
        read_identity(root)


def test_leftover_version_marker_resolves_to_highest(tmp_path: Path) -> None:
    root = _tracked(tmp_path)
    write_version_marker(root, 3)
    write_version_marker(root, 4)

    assert read_version(root) == 4


def test_bump_version_writes_new_marker_and_removes_old(tmp_path: Path) -> None:
    root = _tracked(tmp_path)
    write_version_marker(root, 0)

    assert bump_version(root) == (0, 1)
    assert sorted(path.name for path in root.glob("ver__*")) == ["ver__1"]


def test_identity_validation_rejects_unsafe_names(tmp_path: Path) -> None:
    root = _tracked(tmp_path)
    for identity in ("", ".", "..", "a/b", "a\\b", "line\nbreak"):
        with pytest.raises(ValueError):
            write_identity_marker(root, identity)


def test_manifest_write_overwrites_and_reads_back(tmp_path: Path) -> None:
    root = _tracked(tmp_path)
    first = [ManifestEntry(path="a.txt", fingerprint="0" * 32)]
    second = [ManifestEntry(path="b.txt", fingerprint="1" * 32)]

    write_manifest(root, first)
    write_manifest(root, second)

    assert read_manifest(root) == second
    assert not (root / "__SHISHO__" / "md5.txt.tmp").exists()


def test_read_state_summarizes_directory(tmp_path: Path) -> None:
    root = _tracked(tmp_path)
    write_identity_marker(root, "proj1")
    write_version_marker(root, 2)
    write_manifest(root, [ManifestEntry(path="a.txt", fingerprint="0" * 32)])

    state = read_state(root)

    assert (state.identity, state.version, state.entry_count) == ("proj1", 2, 1)
