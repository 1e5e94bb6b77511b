"""Plugin pipeline: ordered transformations applied to rendered files.

A plugin is any object with an ``apply(rendered, universe)`` method that
returns the (possibly rewritten) rendered file.  The executor runs every
plugin, in the order it was given, on each file of the batch before the file
is written.  Plugins only ever see the file being processed.
"""

from __future__ import annotations

import dataclasses
import re
from typing import TYPE_CHECKING, Iterable, Protocol, runtime_checkable

from ..errors import PluginError

if TYPE_CHECKING:
    from ..model.universe import Universe
    from .executor import RenderedFile


@runtime_checkable
class Plugin(Protocol):
    """A transformation over a rendered file."""

    def apply(self, rendered: RenderedFile, universe: Universe) -> RenderedFile:
        ...


def run_plugins(
    plugins: Iterable[Plugin],
    rendered: RenderedFile,
    universe: Universe,
) -> RenderedFile:
    """Apply *plugins* to *rendered* in order.

    Raises:
        PluginError: If a plugin fails.  Errors that are not already a
            ``PluginError`` are wrapped with the plugin and file names.
    """
    for plugin in plugins:
        name = getattr(plugin, "name", type(plugin).__name__)
        try:
            result = plugin.apply(rendered, universe)
        except PluginError:
            raise
        except Exception as exc:
            raise PluginError(
                f"plugin {name} failed on {rendered.path}: {exc}", path=rendered.path
            ) from exc
        if result is None:
            raise PluginError(f"plugin {name} returned no file for {rendered.path}", path=rendered.path)
        rendered = result
    return rendered


# ---------------------------------------------------------------------------
# Built-in plugins
# ---------------------------------------------------------------------------

_COMMENT_LEADERS: dict[str, str] = {
    ".go": "//",
    ".yaml": "#",
    ".yml": "#",
    ".mk": "#",
    "": "#",
}


class LicenseHeaderPlugin:
    """Prefix a license header to files that do not carry it yet.

    The header is given as plain text; each line is commented with the
    leader of the file type (``//`` for Go, ``#`` for YAML and Makefiles).
    Files whose suffix is not in *suffixes* pass through untouched.
    """

    name = "license-header"

    def __init__(self, header: str, suffixes: Iterable[str] = (".go",)) -> None:
        self.header = header.strip("\n")
        self.suffixes = tuple(suffixes)

    def _commented(self, suffix: str) -> str:
        leader = _COMMENT_LEADERS.get(suffix, "#")
        lines = []
        for line in self.header.splitlines():
            lines.append(f"{leader} {line}".rstrip() if line.strip() else leader)
        return "\n".join(lines)

    def apply(self, rendered: RenderedFile, universe: Universe) -> RenderedFile:
        if not self.header or rendered.suffix not in self.suffixes:
            return rendered
        header = self._commented(rendered.suffix)
        if rendered.content.startswith(header) or self.header in rendered.content:
            return rendered
        return dataclasses.replace(rendered, content=f"{header}\n\n{rendered.content}")


class WhitespacePlugin:
    """Strip trailing whitespace and end the file with exactly one newline."""

    name = "whitespace"

    def apply(self, rendered: RenderedFile, universe: Universe) -> RenderedFile:
        lines = [line.rstrip() for line in rendered.content.splitlines()]
        while lines and not lines[-1]:
            lines.pop()
        content = "\n".join(lines) + "\n" if lines else ""
        if content == rendered.content:
            return rendered
        return dataclasses.replace(rendered, content=content)


_WEBHOOK_ANNOTATION = re.compile(r"^\s*//\s*\+kubebuilder:webhook:")


class WebhookAnnotationGuard:
    """Keep each ``+kubebuilder:webhook:`` annotation at most once per Go file.

    With ``strict=True`` a repeated annotation is rejected with a
    ``PluginError`` instead of being dropped.
    """

    name = "webhook-annotation-guard"

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict

    def apply(self, rendered: RenderedFile, universe: Universe) -> RenderedFile:
        if rendered.suffix != ".go":
            return rendered
        seen: set[str] = set()
        kept: list[str] = []
        dropped = False
        for line in rendered.content.splitlines(keepends=True):
            if _WEBHOOK_ANNOTATION.match(line):
                key = line.strip()
                if key in seen:
                    if self.strict:
                        raise PluginError(
                            f"duplicate webhook annotation in {rendered.path}: {key}",
                            path=rendered.path,
                        )
                    dropped = True
                    continue
                seen.add(key)
            kept.append(line)
        if not dropped:
            return rendered
        return dataclasses.replace(rendered, content="".join(kept))
