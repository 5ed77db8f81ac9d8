"""Typed models for manifest state."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class ManifestEntry:
    """One tracked file: `data`-relative POSIX path plus content fingerprint."""

    path: str
    fingerprint: str


@dataclass(slots=True, frozen=True)
class ManifestDelta:
    """Deterministic change classification between two manifests."""

    added: tuple[str, ...]
    changed: tuple[str, ...]
    removed: tuple[str, ...]

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.changed or self.removed)


@dataclass(slots=True, frozen=True)
class TrackedState:
    """Identity, version and manifest size of a tracked directory."""

    identity: str
    version: int
    entry_count: int
