from __future__ import annotations

from pathlib import Path


def test_required_package_paths_exist() -> None:
    root = Path(__file__).resolve().parents[1]
    required = [
        "src/shisho/cli.py",
        "src/shisho/config.py",
        "src/shisho/operations.py",
        "src/shisho/manifest/__init__.py",
        "src/shisho/logging/__init__.py",
    ]
    for rel in required:
        assert (root / rel).exists(), rel
