from __future__ import annotations

from pathlib import Path

import pytest

from shisho.manifest import fingerprint_file

HELLO_MD5 = "5d41402abc4b2a76b9719d911017c592"


def test_fingerprint_is_md5_hex_of_content(tmp_path: Path) -> None:
    path = tmp_path / "x.txt"
    path.write_bytes(b"hello")

    assert fingerprint_file(path) == HELLO_MD5


def test_fingerprint_is_independent_of_chunk_size(tmp_path: Path) -> None:
    path = tmp_path / "blob.bin"
    path.write_bytes(bytes(range(256)) * 64)

    assert fingerprint_file(path, chunk_bytes=7) == fingerprint_file(path, chunk_bytes=1 << 20)


def test_single_byte_change_changes_fingerprint(tmp_path: Path) -> None:
    path = tmp_path / "x.txt"
    path.write_bytes(b"hello")
    before = fingerprint_file(path)
    path.write_bytes(b"hellp")

    assert fingerprint_file(path) != before


def test_missing_file_raises_os_error(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        fingerprint_file(tmp_path / "absent.txt")
