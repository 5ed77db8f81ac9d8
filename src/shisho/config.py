"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from shisho.manifest import DEFAULT_CHUNK_BYTES, SYMLINK_POLICIES

CONFIG_FILE_NAME = "shisho.toml"

MAX_WORKERS_CAP = 64
MAX_CHUNK_BYTES_CAP = 16 * 1024 * 1024
MAX_PREVIEW_ENTRIES_CAP = 100

DEFAULT_PREVIEW_ENTRIES = 5


@dataclass(slots=True, frozen=True)
class HashingConfig:
    """Tree fingerprinting settings."""

    workers: int
    chunk_bytes: int
    symlinks: str


@dataclass(slots=True, frozen=True)
class InitConfig:
    """Init confirmation settings."""

    preview_entries: int


@dataclass(slots=True, frozen=True)
class AuditConfig:
    """Audit log toggles."""

    enabled: bool


@dataclass(slots=True, frozen=True)
class ShishoConfig:
    """Fully merged configuration."""

    hashing: HashingConfig
    init: InitConfig
    audit: AuditConfig


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional command-line overrides applied at highest precedence."""

    workers: int | None = None
    symlinks: str | None = None
    audit_enabled: bool | None = None


def default_config() -> ShishoConfig:
    """Build the built-in defaults."""
    return ShishoConfig(
        hashing=HashingConfig(workers=1, chunk_bytes=DEFAULT_CHUNK_BYTES, symlinks="follow"),
        init=InitConfig(preview_entries=DEFAULT_PREVIEW_ENTRIES),
        audit=AuditConfig(enabled=True),
    )


def load_config_file(path: Path) -> dict[str, object]:
    """Load a TOML config file; a missing file yields an empty payload."""
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{path.name} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def merge_config(
    base: ShishoConfig, payload: dict[str, object], overrides: CliOverrides
) -> ShishoConfig:
    """Merge defaults, config file, then CLI overrides."""
    hashing_payload = _get_table(payload, "hashing")
    init_payload = _get_table(payload, "init")
    audit_payload = _get_table(payload, "audit")

    workers = _optional_positive_int_with_cap(
        hashing_payload.get("workers"),
        "hashing.workers",
        base.hashing.workers,
        MAX_WORKERS_CAP,
    )
    chunk_bytes = _optional_positive_int_with_cap(
        hashing_payload.get("chunk_bytes"),
        "hashing.chunk_bytes",
        base.hashing.chunk_bytes,
        MAX_CHUNK_BYTES_CAP,
    )
    symlinks = _optional_symlink_policy(
        hashing_payload.get("symlinks"), "hashing.symlinks", base.hashing.symlinks
    )
    preview_entries = _optional_positive_int_with_cap(
        init_payload.get("preview_entries"),
        "init.preview_entries",
        base.init.preview_entries,
        MAX_PREVIEW_ENTRIES_CAP,
    )

    audit_enabled = base.audit.enabled
    if "enabled" in audit_payload:
        raw_enabled = audit_payload["enabled"]
        if not isinstance(raw_enabled, bool):
            raise ValueError("Config field 'audit.enabled' must be a boolean.")
        audit_enabled = raw_enabled

    merged = ShishoConfig(
        hashing=HashingConfig(workers=workers, chunk_bytes=chunk_bytes, symlinks=symlinks),
        init=InitConfig(preview_entries=preview_entries),
        audit=AuditConfig(enabled=audit_enabled),
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: ShishoConfig, overrides: CliOverrides) -> ShishoConfig:
    """Apply command-line overrides at highest precedence."""
    workers = _optional_positive_int_with_cap(
        overrides.workers,
        "overrides.workers",
        config.hashing.workers,
        MAX_WORKERS_CAP,
    )
    symlinks = _optional_symlink_policy(
        overrides.symlinks, "overrides.symlinks", config.hashing.symlinks
    )
    return ShishoConfig(
        hashing=HashingConfig(
            workers=workers,
            chunk_bytes=config.hashing.chunk_bytes,
            symlinks=symlinks,
        ),
        init=config.init,
        audit=AuditConfig(
            enabled=(
                overrides.audit_enabled
                if overrides.audit_enabled is not None
                else config.audit.enabled
            )
        ),
    )


def load_effective_config(
    config_path: Path | None = None,
    overrides: CliOverrides | None = None,
    *,
    search_dir: Path | None = None,
) -> ShishoConfig:
    """Load effective config using merge order defaults -> config file -> overrides.

    An explicit ``config_path`` must exist; otherwise ``shisho.toml`` in
    ``search_dir`` (default: the working directory) is used when present.
    """
    if config_path is not None:
        if not config_path.is_file():
            raise ValueError(f"Config file not found: {config_path}")
        payload = load_config_file(config_path)
    else:
        payload = load_config_file((search_dir or Path.cwd()) / CONFIG_FILE_NAME)
    return merge_config(default_config(), payload, overrides or CliOverrides())


def _optional_positive_int_with_cap(
    value: object,
    name: str,
    default: int,
    cap: int | None,
) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value


def _optional_symlink_policy(value: object, name: str, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str) or value not in SYMLINK_POLICIES:
        allowed = ", ".join(SYMLINK_POLICIES)
        raise ValueError(f"Config field '{name}' must be one of: {allowed}.")
    return value
