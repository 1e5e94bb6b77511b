"""Marker-based merge updates of previously generated files.

Generated files that later scaffolds must extend (``main.go``, the CRD
``kustomization.yaml``, a controller package's ``suite_test.go``) carry
marker comments such as::

    // +kubebuilder:scaffold:imports
    # +kubebuilder:scaffold:crdkustomizeresource

A marker line closes its region: new fragments are spliced immediately
before it, so successive updates append in order and the marker stays last.
Updates are update-only and all-or-nothing: the file must exist, every marker
that receives fragments must appear exactly once, and the file is rewritten
atomically only after every marker has been located.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence

from ..errors import MergeError, PersistenceError
from ..utils import atomic_write

MARKER_PREFIX = "+kubebuilder:scaffold:"

_YAML_SUFFIXES = (".yaml", ".yml")


@dataclass(frozen=True)
class Marker:
    """A named insertion point, rendered as a single comment line."""

    name: str
    comment: str = "//"

    def __str__(self) -> str:
        return f"{self.comment} {MARKER_PREFIX}{self.name}"

    @classmethod
    def for_path(cls, path: str | Path, name: str) -> "Marker":
        """Build a marker using the comment leader of *path*'s file type."""
        comment = "#" if Path(path).suffix in _YAML_SUFFIXES else "//"
        return cls(name=name, comment=comment)

    def matches(self, line: str) -> bool:
        return line.strip() == str(self)


def contains_fragment(content: str, fragment: str) -> bool:
    """Return ``True`` if *fragment* (ignoring surrounding whitespace) is already in *content*."""
    needle = fragment.strip()
    return bool(needle) and needle in content


def _as_lines(fragment: str) -> str:
    return fragment if fragment.endswith("\n") else fragment + "\n"


def splice(content: str, fragments: Mapping[Marker, Sequence[str]], source: str = "<string>") -> str:
    """Return *content* with *fragments* inserted before their markers.

    Markers mapped to an empty sequence are ignored and need not be present.

    Raises:
        MergeError: A marker with fragments is missing or appears more than once.
    """
    lines = content.splitlines(keepends=True)
    inserts: dict[int, list[str]] = {}
    for marker, values in fragments.items():
        if not values:
            continue
        positions = [i for i, line in enumerate(lines) if marker.matches(line)]
        if not positions:
            raise MergeError(f"marker {marker!s} not found in {source}", path=source)
        if len(positions) > 1:
            raise MergeError(
                f"marker {marker!s} appears {len(positions)} times in {source}", path=source
            )
        inserts.setdefault(positions[0], []).extend(_as_lines(v) for v in values)

    if not inserts:
        return content

    out: list[str] = []
    for i, line in enumerate(lines):
        out.extend(inserts.get(i, ()))
        out.append(line)
    return "".join(out)


def insert_fragments(path: str | Path, fragments: Mapping[Marker, Sequence[str]]) -> Path:
    """Splice *fragments* into the existing file at *path*.

    Duplicate fragments are not filtered here; callers only pass fragments
    for wiring that is not in place yet.

    Raises:
        MergeError: The file does not exist, or a marker is missing or
            duplicated.  The file is left unchanged.
        PersistenceError: Rewriting the file failed.
    """
    target = Path(path)
    if not target.is_file():
        raise MergeError(f"unable to update {target}: file does not exist", path=target)
    content = target.read_text(encoding="utf-8")
    updated = splice(content, fragments, source=str(target))
    if updated == content:
        return target
    try:
        return atomic_write(target, updated)
    except OSError as exc:
        raise PersistenceError(f"failed to write {target}: {exc}", path=target) from exc


def update(path: str | Path, fragment: str, marker: Marker) -> Path:
    """Splice a single *fragment* before *marker* in the file at *path*."""
    return insert_fragments(path, {marker: [fragment]})
