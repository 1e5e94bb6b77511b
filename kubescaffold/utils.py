"""Shared utility functions for kubescaffold.

Provides Rich-based progress reporting, atomic file writes, and the naming
helpers (lower-casing, pluralisation, Go import aliases) used when deriving
paths and template values from a resource.
"""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path

from rich.console import Console
from rich.rule import Rule

console = Console()


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def get_console(quiet: bool = False) -> Console:
    """Return the shared console, or a silent one when *quiet* is set."""
    if quiet:
        return Console(quiet=True)
    return console


def print_header(title: str, out: Console | None = None) -> None:
    """Print a full-width rule announcing a scaffold run."""
    out = out or console
    out.print(Rule(f"[bold bright_green]{title}[/bold bright_green]", style="bright_green"))


def print_path(path: str | Path, out: Console | None = None) -> None:
    """Print a single generated or updated project path."""
    (out or console).print(f"  [green]+[/green] {path}", highlight=False)


def print_success(message: str, out: Console | None = None) -> None:
    """Print a green success message."""
    (out or console).print(f"[bold green]{message}[/bold green]")


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def _current_umask() -> int:
    # os.umask can only be read by setting it
    mask = os.umask(0)
    os.umask(mask)
    return mask


def atomic_write(path: str | Path, content: str) -> Path:
    """Write *content* to *path* so readers never observe a partial file.

    The content goes to a temporary file in the destination directory, is
    flushed to disk, and then replaces the target with ``os.replace``.  An
    existing target keeps its mode; a new file gets the default mode for the
    current umask.  Parent directories are created automatically.

    Raises:
        OSError: If the directory cannot be created or the write fails.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        if target.exists():
            os.chmod(tmp_name, target.stat().st_mode & 0o7777)
        else:
            os.chmod(tmp_name, 0o666 & ~_current_umask())
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return target


# ---------------------------------------------------------------------------
# Naming helpers
# ---------------------------------------------------------------------------

_IRREGULAR_PLURALS: dict[str, str] = {
    "person": "people",
    "child": "children",
    "index": "indices",
    "matrix": "matrices",
    "policy": "policies",
    "status": "statuses",
}


def pluralize(word: str) -> str:
    """Return the English plural of a lower-case resource kind.

    E.g. ``'frontend'`` -> ``'frontends'``, ``'policy'`` -> ``'policies'``,
    ``'ingress'`` -> ``'ingresses'``.
    """
    if not word:
        return word
    if word in _IRREGULAR_PLURALS:
        return _IRREGULAR_PLURALS[word]
    if word.endswith("y") and len(word) > 1 and word[-2] not in "aeiou":
        return word[:-1] + "ies"
    if word.endswith(("s", "sh", "ch", "x", "z")):
        return word + "es"
    return word + "s"


def import_alias(group: str, version: str) -> str:
    """Build the Go import alias for an API package.

    Dots and dashes are not valid in Go identifiers, so
    ``('cache.example', 'v1beta1')`` becomes ``'cacheexamplev1beta1'``.
    """
    return re.sub(r"[.\-]", "", f"{group}{version}".lower())


def package_name(group: str) -> str:
    """Return a Go package name for an API group (``'my-group.io'`` -> ``'mygroupio'``)."""
    return re.sub(r"[^a-z0-9]", "", group.lower())
