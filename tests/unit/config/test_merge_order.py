from __future__ import annotations

from pathlib import Path

from shisho.config import CliOverrides, default_config, load_effective_config


def test_defaults_when_no_config_file(tmp_path: Path) -> None:
    config = load_effective_config(search_dir=tmp_path)

    assert config == default_config()
    assert config.hashing.symlinks == "follow"
    assert config.init.preview_entries == 5
    assert config.audit.enabled is True


def test_merge_order_defaults_then_file_then_cli(tmp_path: Path) -> None:
    (tmp_path / "shisho.toml").write_text(
        "\n".join(
            [
                "[hashing]",
                "workers = 4",
                'symlinks = "skip"',
                "",
                "[init]",
                "preview_entries = 9",
                "",
                "[audit]",
                "enabled = false",
            ]
        ),
        encoding="utf-8",
    )
    overrides = CliOverrides(workers=8, audit_enabled=True)

    config = load_effective_config(overrides=overrides, search_dir=tmp_path)

    assert config.hashing.workers == 8
    assert config.hashing.symlinks == "skip"
    assert config.init.preview_entries == 9
    assert config.audit.enabled is True


def test_explicit_config_path_wins_over_search_dir(tmp_path: Path) -> None:
    (tmp_path / "shisho.toml").write_text("[hashing]\nworkers = 2\n", encoding="utf-8")
    explicit = tmp_path / "custom.toml"
    explicit.write_text("[hashing]\nworkers = 3\n", encoding="utf-8")

    config = load_effective_config(config_path=explicit, search_dir=tmp_path)

    assert config.hashing.workers == 3
