"""Manifest text codec and fingerprint-set comparison."""

from __future__ import annotations

from collections.abc import Iterable

from shisho.manifest.errors import FormatError
from shisho.manifest.models import ManifestDelta, ManifestEntry

_HEX_DIGITS = frozenset("0123456789abcdef")


def encode(entries: Iterable[ManifestEntry]) -> str:
    """Render entries as ``<fingerprint> <path>`` lines in sequence order."""
    lines: list[str] = []
    for entry in entries:
        if not entry.path:
            raise FormatError("Manifest path is empty.")
        if "\n" in entry.path:
            raise FormatError(f"Manifest path contains a line break: {entry.path!r}")
        if not entry.fingerprint or " " in entry.fingerprint:
            raise FormatError(f"Fingerprint is not encodable: {entry.fingerprint!r}")
        lines.append(f"{entry.fingerprint} {entry.path}\n")
    return "".join(lines)


def decode(text: str) -> list[ManifestEntry]:
    """Parse manifest text; everything after the first space is the path."""
    if text.endswith("\n"):
        text = text[:-1]
    if not text:
        return []
    entries: list[ManifestEntry] = []
    seen: set[str] = set()
    for line_number, line in enumerate(text.split("\n"), start=1):
        fingerprint, separator, path = line.partition(" ")
        if not separator:
            raise FormatError("Missing space between fingerprint and path.", line_number)
        if not path:
            raise FormatError("Empty path.", line_number)
        if not fingerprint or not _HEX_DIGITS.issuperset(fingerprint):
            raise FormatError(
                f"Fingerprint is not lowercase hexadecimal: {fingerprint!r}", line_number
            )
        if path in seen:
            raise FormatError(f"Duplicate path: {path}", line_number)
        seen.add(path)
        entries.append(ManifestEntry(path=path, fingerprint=fingerprint))
    return entries


def fingerprint_map(entries: Iterable[ManifestEntry]) -> dict[str, str]:
    """Map entries by path."""
    return {entry.path: entry.fingerprint for entry in entries}


def manifests_equal(left: list[ManifestEntry], right: list[ManifestEntry]) -> bool:
    """Fingerprint-set equality: same paths, same fingerprint per path, any order."""
    if len(left) != len(right):
        return False
    return fingerprint_map(left) == fingerprint_map(right)


def diff_manifests(
    stored: list[ManifestEntry],
    current: list[ManifestEntry],
) -> ManifestDelta:
    """Compute deterministic added/changed/removed path sets."""
    before = fingerprint_map(stored)
    after = fingerprint_map(current)
    before_paths = set(before)
    after_paths = set(after)
    changed = sorted(path for path in before_paths & after_paths if before[path] != after[path])
    return ManifestDelta(
        added=tuple(sorted(after_paths - before_paths)),
        changed=tuple(changed),
        removed=tuple(sorted(before_paths - after_paths)),
    )
