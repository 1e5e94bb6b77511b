"""Project bootstrap: lays down the files every later scaffold builds on.

``ProjectScaffolder.scaffold()`` writes the boilerplate header, persists the
``PROJECT`` file, and renders the version's project template set -- the
manager entry point (carrying the ``+kubebuilder:scaffold`` markers the API
scaffolder later splices into) and the build descriptors.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from rich.console import Console

from ..config import ProjectConfig, ProjectStore, ProjectVersion
from ..errors import ConfigurationError, PersistenceError, ScaffoldError
from ..model.universe import build_project_universe
from ..utils import get_console, print_header, print_path, print_success
from .executor import Scaffold
from .plugins import Plugin
from .registry import ArtifactFamily, templates_for
from .templates import TemplateRenderer


class ProjectScaffolder:
    """Initialises a project directory for the configured schema version.

    Args:
        config: Configuration to persist; must carry a domain and repo.
        store: Where ``PROJECT`` and the boilerplate file are written.
        project_dir: Project root; defaults to ``store.project_dir``.
        boilerplate: License header; defaults to ``config.boilerplate``.
        plugins: Transformations applied to the rendered project files.
        overwrite: Overwrite existing files instead of failing.
        console: Where progress is reported.
    """

    def __init__(
        self,
        config: ProjectConfig,
        store: ProjectStore,
        *,
        project_dir: str | Path | None = None,
        boilerplate: str | None = None,
        plugins: Sequence[Plugin] = (),
        overwrite: bool = False,
        console: Console | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.project_dir = Path(project_dir) if project_dir is not None else store.project_dir
        if boilerplate is not None:
            self.config.boilerplate = boilerplate
        self.plugins = list(plugins)
        self.overwrite = overwrite
        self.console = console or get_console()
        self.renderer = renderer or TemplateRenderer()

    def scaffold(self) -> list[Path]:
        """Write the project skeleton.

        Returns:
            Project-relative paths written, starting with the boilerplate and
            ``PROJECT`` files.

        Raises:
            ConfigurationError: Unknown version, or missing domain or repo.
            ScaffoldError: Writing a file failed.
        """
        try:
            version = ProjectVersion(self.config.version)
        except ValueError:
            raise ConfigurationError(f"unknown project version {self.config.version}") from None

        universe = build_project_universe(self.config)
        units = templates_for(version, ArtifactFamily.PROJECT)

        print_header(f"Initialising version {version.value} project", self.console)
        paths: list[Path] = []

        if self.config.boilerplate:
            try:
                self.store.save_boilerplate(self.config.boilerplate)
            except ScaffoldError as exc:
                raise exc.at_stage("writing boilerplate") from exc
            paths.append(Path(self.store.boilerplate_file))
            print_path(self.store.boilerplate_file, self.console)

        try:
            self.store.save(self.config)
        except ScaffoldError as exc:
            raise exc.at_stage("writing project file") from exc
        paths.append(Path(self.store.project_file))
        print_path(self.store.project_file, self.console)

        executor = Scaffold(
            self.project_dir,
            self.plugins,
            renderer=self.renderer,
            overwrite=self.overwrite,
            console=self.console,
        )
        try:
            paths += executor.execute(universe, units)
        except ScaffoldError as exc:
            raise exc.at_stage("scaffolding project") from exc
        except OSError as exc:
            raise PersistenceError(str(exc), stage="scaffolding project") from exc

        print_success("Project initialised.", self.console)
        return paths
