from __future__ import annotations

from pathlib import Path

from shisho.manifest import fingerprint_tree


def _build_tree(root: Path) -> None:
    (root / "b_dir" / "nested").mkdir(parents=True)
    (root / "a.txt").write_text("a", encoding="utf-8")
    (root / "c.txt").write_text("c", encoding="utf-8")
    (root / "b_dir" / "z.txt").write_text("z", encoding="utf-8")
    (root / "b_dir" / "nested" / "deep.txt").write_text("deep", encoding="utf-8")
    (root / "empty_dir").mkdir()


def test_tree_order_is_depth_first_by_name(tmp_path: Path) -> None:
    _build_tree(tmp_path)

    paths = [entry.path for entry in fingerprint_tree(tmp_path)]

    assert paths == [
        "a.txt",
        "b_dir/nested/deep.txt",
        "b_dir/z.txt",
        "c.txt",
    ]


def test_directories_are_not_entries(tmp_path: Path) -> None:
    _build_tree(tmp_path)

    paths = {entry.path for entry in fingerprint_tree(tmp_path)}

    assert "empty_dir" not in paths
    assert "b_dir" not in paths
    assert all("\\" not in path for path in paths)


def test_parallel_hashing_matches_sequential_output(tmp_path: Path) -> None:
    _build_tree(tmp_path)
    for index in range(20):
        (tmp_path / f"file_{index:02d}.dat").write_bytes(bytes([index]) * 1000)

    sequential = fingerprint_tree(tmp_path, workers=1)
    parallel = fingerprint_tree(tmp_path, workers=4)

    assert parallel == sequential


def test_paths_with_spaces_are_kept_verbatim(tmp_path: Path) -> None:
    (tmp_path / "my docs").mkdir()
    (tmp_path / "my docs" / "read me.txt").write_text("x", encoding="utf-8")

    assert [entry.path for entry in fingerprint_tree(tmp_path)] == ["my docs/read me.txt"]


def test_empty_tree_has_no_entries(tmp_path: Path) -> None:
    assert fingerprint_tree(tmp_path) == []
