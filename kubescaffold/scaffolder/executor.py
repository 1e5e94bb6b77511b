"""Scaffold executor: renders an ordered template batch and writes it to disk.

For every ``TemplateUnit`` of a batch, in order, the executor resolves the
output path against the universe, applies the unit's existing-file policy,
renders the template, runs the rendered file through the plugin chain, and
writes it atomically.  The first failure stops the batch; files written
earlier in the batch stay on disk so a scaffold can be resumed by re-running.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Sequence

from jinja2 import TemplateError
from rich.console import Console

from ..errors import FileExistsScaffoldError, PersistenceError, RenderError
from ..model.universe import Universe
from ..utils import atomic_write, get_console, print_path
from .plugins import Plugin, run_plugins
from .templates import TemplateRenderer


class IfExists(str, Enum):
    """What to do when a unit's output file is already on disk."""
    SKIP = "skip"
    ERROR = "error"
    OVERWRITE = "overwrite"


@dataclass(frozen=True)
class TemplateUnit:
    """One template of a template set and the rule that places its output."""

    identity: str
    template: str
    path_rule: Callable[[Universe], str]
    if_exists: IfExists = IfExists.ERROR

    def path_for(self, universe: Universe) -> Path:
        """Resolve the project-relative output path."""
        return Path(self.path_rule(universe))


@dataclass
class RenderedFile:
    """A rendered template on its way to disk."""

    path: Path
    content: str
    existed_before: bool = False

    @property
    def suffix(self) -> str:
        return self.path.suffix


class Scaffold:
    """Executes template batches against a project directory.

    Args:
        project_dir: Root of the project being scaffolded.
        plugins: Transformations applied, in order, to every rendered file.
        renderer: Template backend; a default ``TemplateRenderer`` when omitted.
        overwrite: Treat ``IfExists.ERROR`` units as ``IfExists.OVERWRITE``.
        console: Where written paths are reported.
    """

    def __init__(
        self,
        project_dir: str | Path,
        plugins: Sequence[Plugin] = (),
        *,
        renderer: TemplateRenderer | None = None,
        overwrite: bool = False,
        console: Console | None = None,
    ) -> None:
        self.project_dir = Path(project_dir)
        self.plugins = list(plugins)
        self.renderer = renderer or TemplateRenderer()
        self.overwrite = overwrite
        self.console = console or get_console()

    def execute(self, universe: Universe, units: Iterable[TemplateUnit]) -> list[Path]:
        """Render and write *units* in order.

        Returns:
            Project-relative paths of the files written, in batch order.
            Files skipped by an ``IfExists.SKIP`` policy are not included.

        Raises:
            RenderError: A template failed to render.
            PluginError: A plugin rejected or failed on a rendered file.
            PersistenceError: A write failed, or the file exists under an
                ``IfExists.ERROR`` policy (``FileExistsScaffoldError``).
        """
        written: list[Path] = []
        for unit in units:
            rendered = self._render_unit(universe, unit)
            if rendered is None:
                continue
            rendered = run_plugins(self.plugins, rendered, universe)
            self._write(rendered)
            print_path(rendered.path, self.console)
            written.append(rendered.path)
        return written

    # -- Internals ---------------------------------------------------------

    def _policy(self, unit: TemplateUnit) -> IfExists:
        if self.overwrite and unit.if_exists is IfExists.ERROR:
            return IfExists.OVERWRITE
        return unit.if_exists

    def _render_unit(self, universe: Universe, unit: TemplateUnit) -> RenderedFile | None:
        try:
            rel_path = unit.path_for(universe)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise RenderError(f"unable to resolve output path for {unit.identity}: {exc}") from exc

        existed = (self.project_dir / rel_path).exists()
        if existed:
            policy = self._policy(unit)
            if policy is IfExists.SKIP:
                return None
            if policy is IfExists.ERROR:
                raise FileExistsScaffoldError(
                    f"failed to create {rel_path}: file already exists", path=rel_path
                )

        try:
            content = self.renderer.render(unit.template, universe.context())
        except TemplateError as exc:
            raise RenderError(
                f"failed to render {unit.identity} ({unit.template}): {exc}", path=rel_path
            ) from exc

        return RenderedFile(path=rel_path, content=content, existed_before=existed)

    def _write(self, rendered: RenderedFile) -> None:
        try:
            atomic_write(self.project_dir / rendered.path, rendered.content)
        except OSError as exc:
            raise PersistenceError(
                f"failed to write {rendered.path}: {exc}", path=rendered.path
            ) from exc
