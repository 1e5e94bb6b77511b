"""API scaffolder: dispatches a scaffold run to the project's version strategy.

``APIScaffolder.scaffold()`` inspects ``ProjectConfig.version`` and runs the
matching strategy:

* **V1** renders the API batch and then the controller batch in the
  ``pkg/apis`` / ``pkg/controller`` layout.  Nothing is registered in the
  project file and no shared file is merge-updated.
* **V2** registers the resource (persisting the project file only when the
  resource is new), renders the API batch and the CRD kustomize batch,
  wires the new CRD into ``config/crd/kustomization.yaml``, renders the
  controller batch, wires it into the controller test suite, and finally
  updates ``main.go``.

When the resource itself is not generated the example reconcile body is
switched off before the controller is rendered, so a controller for an
existing type never scaffolds logic that creates further managed objects.

Every failure propagates as a ``ScaffoldError`` tagged with the stage that
produced it, e.g. ``error scaffolding controller: ...``.  Files written
before the failure are left in place; re-running the scaffold resumes it.
"""

from __future__ import annotations

from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Iterator, Sequence

from rich.console import Console

from ..config import ProjectConfig, ProjectStore
from ..errors import ConfigurationError, PersistenceError, ScaffoldError
from ..model.resource import Resource
from ..model.universe import Universe, build_universe
from ..utils import get_console, print_path, print_success
from .executor import Scaffold
from .plugins import Plugin
from .registry import ArtifactFamily, templates_for
from .templates import TemplateRenderer
from .updaters import update_kustomization, update_main, update_suite_test


class ScaffoldState(str, Enum):
    """Dispatch state of an ``APIScaffolder``."""
    UNRESOLVED = "unresolved"
    V1 = "v1"
    V2 = "v2"
    FAILED = "failed"


@contextmanager
def _stage(name: str) -> Iterator[None]:
    """Tag any scaffold or storage failure raised in the block with *name*."""
    try:
        yield
    except ScaffoldError as exc:
        raise exc.at_stage(name) from exc
    except OSError as exc:
        raise PersistenceError(str(exc), stage=name) from exc


class APIScaffolder:
    """Scaffolds a resource's API types and/or controller into a project.

    Args:
        config: The loaded project configuration.  V2 runs may register the
            resource in it.
        resource: The resource to scaffold.
        store: Persists ``config`` after a new registration.
        do_resource: Generate the API types.
        do_controller: Generate the controller.
        plugins: Transformations applied to V2 API and controller files.
        project_dir: Project root; defaults to ``store.project_dir``.
        overwrite: Overwrite existing per-resource files instead of failing.
        console: Where progress is reported.
    """

    def __init__(
        self,
        config: ProjectConfig,
        resource: Resource,
        store: ProjectStore,
        *,
        do_resource: bool = True,
        do_controller: bool = True,
        plugins: Sequence[Plugin] = (),
        project_dir: str | Path | None = None,
        overwrite: bool = False,
        console: Console | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.config = config
        self.resource = resource
        self.store = store
        self.do_resource = do_resource
        self.do_controller = do_controller
        self.plugins = list(plugins)
        self.project_dir = Path(project_dir) if project_dir is not None else store.project_dir
        self.overwrite = overwrite
        self.console = console or get_console()
        self.renderer = renderer or TemplateRenderer()
        self.state = ScaffoldState.UNRESOLVED

    # -- Public API --------------------------------------------------------

    def scaffold(self) -> list[Path]:
        """Run the strategy for the project's version.

        Returns:
            Project-relative paths of every file written or updated, in the
            order they were touched.

        Raises:
            ConfigurationError: The project version is not supported, or the
                resource or project configuration is invalid.  Nothing has
                been written.
            ScaffoldError: A later stage failed; the message names the stage.
        """
        self.console.print("Writing scaffold for you to edit...")
        try:
            if self.config.is_v1():
                self.state = ScaffoldState.V1
                paths = self._scaffold_v1()
            elif self.config.is_v2():
                self.state = ScaffoldState.V2
                paths = self._scaffold_v2()
            else:
                raise ConfigurationError(f"unknown project version {self.config.version}")
        except ScaffoldError:
            self.state = ScaffoldState.FAILED
            raise

        print_success(
            f"Scaffolded {self.resource.kind}: {len(paths)} file(s) written or updated.", self.console
        )
        return paths

    # -- Strategies --------------------------------------------------------

    def _scaffold_v1(self) -> list[Path]:
        paths: list[Path] = []
        self.resource.validate_resource()

        if self.do_resource:
            with _stage("building API scaffold"):
                universe = self._universe()
                units = templates_for(self.config.version, ArtifactFamily.API)
            with _stage("scaffolding APIs"):
                paths += self._executor(plugins=()).execute(universe, units)
        else:
            self.resource.create_example_reconcile_body = False

        if self.do_controller:
            with _stage("building controller scaffold"):
                universe = self._universe()
                units = templates_for(self.config.version, ArtifactFamily.CONTROLLER)
            with _stage("scaffolding controller"):
                paths += self._executor(plugins=()).execute(universe, units)

        return paths

    def _scaffold_v2(self) -> list[Path]:
        paths: list[Path] = []
        self.resource.validate_resource()

        if self.do_resource:
            with _stage("updating project file with resource information"):
                newly_registered = self.config.add_resource(self.resource)
                if newly_registered:
                    try:
                        self.store.save(self.config)
                    except Exception:
                        # Keep the in-memory registry in step with PROJECT
                        self.config.resources.pop()
                        raise

            with _stage("building API scaffold"):
                universe = self._universe()
                units = templates_for(self.config.version, ArtifactFamily.API)
            with _stage("scaffolding APIs"):
                paths += self._executor(plugins=self.plugins).execute(universe, units)

            with _stage("building kustomization scaffold"):
                universe = self._universe()
                units = templates_for(self.config.version, ArtifactFamily.KUSTOMIZE)
            with _stage("scaffolding kustomization"):
                paths += self._executor(plugins=()).execute(universe, units)

            if newly_registered:
                with _stage("updating kustomization.yaml"):
                    paths += self._updated(
                        update_kustomization(self.project_dir, universe, self.renderer)
                    )
        else:
            self.resource.create_example_reconcile_body = False

        if self.do_controller:
            with _stage("building controller scaffold"):
                universe = self._universe()
                units = templates_for(self.config.version, ArtifactFamily.CONTROLLER)
            with _stage("scaffolding controller"):
                paths += self._executor(plugins=self.plugins).execute(universe, units)

            with _stage("updating suite_test.go under controllers pkg"):
                paths += self._updated(update_suite_test(self.project_dir, universe, self.renderer))

        with _stage("updating main.go"):
            universe = self._universe()
            paths += self._updated(
                update_main(self.project_dir, universe, self.do_resource, self.do_controller, self.renderer)
            )

        return paths

    # -- Internals ---------------------------------------------------------

    def _universe(self) -> Universe:
        """Build a fresh universe from the current state of the config."""
        return build_universe(self.config, self.resource)

    def _executor(self, plugins: Sequence[Plugin]) -> Scaffold:
        return Scaffold(
            self.project_dir,
            plugins,
            renderer=self.renderer,
            overwrite=self.overwrite,
            console=self.console,
        )

    def _updated(self, path: Path | None) -> list[Path]:
        if path is None:
            return []
        print_path(path, self.console)
        return [path]
