"""Integration tests for init-then-scaffold runs.

These tests initialise a real project in a temporary directory, scaffold
resources into it through the public entry points, and check the generated
tree: file layout, cross-file wiring, the persisted PROJECT file, and the
failure behaviour of the merge updates.

No Go toolchain or cluster is required.
"""

from __future__ import annotations

import os
import stat
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import yaml

from kubescaffold.config import ProjectConfig, ProjectStore, Settings
from kubescaffold.errors import ConfigurationError, MergeError
from kubescaffold.model.resource import Resource
from kubescaffold.scaffolder import (
    APIScaffolder,
    LicenseHeaderPlugin,
    ProjectScaffolder,
    WebhookAnnotationGuard,
    WhitespacePlugin,
)
from kubescaffold.utils import get_console


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _init_project(project_dir: Path, console, *, version: str = "2", multigroup: bool = False) -> ProjectStore:
    """Initialise a project and return its store."""
    store = ProjectStore(project_dir)
    config = ProjectConfig(
        version=version,
        domain="example.com",
        repo="github.com/example/guestbook",
        multigroup=multigroup,
    )
    ProjectScaffolder(config, store, boilerplate="/*\nCopyright 2026 Example.\n*/", console=console).scaffold()
    return store


def _create_api(store: ProjectStore, resource: Resource, console, **kwargs) -> list[Path]:
    """Load the project and scaffold *resource*, as the invoking layer would."""
    config = store.load()
    return APIScaffolder(config, resource, store, console=console, **kwargs).scaffold()


def _read(project_dir: Path, rel: str) -> str:
    return (project_dir / rel).read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------

@pytest.mark.integration
class TestV2SingleGroup:
    """Fresh V2 project: resource and controller for apps/v1 Frontend."""

    def test_files_and_wiring(self, tmp_project_dir: Path, quiet_console) -> None:
        store = _init_project(tmp_project_dir, quiet_console)
        paths = _create_api(store, Resource(group="apps", version="v1", kind="Frontend"), quiet_console)

        assert Path("api/v1/frontend_types.go") in paths
        assert Path("controllers/frontend_controller.go") in paths
        assert (tmp_project_dir / "api/v1/frontend_types.go").is_file()
        assert (tmp_project_dir / "controllers/frontend_controller.go").is_file()

        main = _read(tmp_project_dir, "main.go")
        assert 'appsv1 "github.com/example/guestbook/api/v1"' in main
        assert '"github.com/example/guestbook/controllers"' in main
        assert "_ = appsv1.AddToScheme(scheme)" in main
        assert "(&controllers.FrontendReconciler{" in main

        suite = _read(tmp_project_dir, "controllers/suite_test.go")
        assert "err = appsv1.AddToScheme(scheme.Scheme)" in suite

        kustomization = yaml.safe_load(_read(tmp_project_dir, "config/crd/kustomization.yaml"))
        assert kustomization["resources"] == ["bases/apps.example.com_frontends.yaml"]

        project = yaml.safe_load(_read(tmp_project_dir, "PROJECT"))
        assert project["resources"] == [{"group": "apps", "version": "v1", "kind": "Frontend"}]

    def test_sample_manifest_is_valid_yaml(self, tmp_project_dir: Path, quiet_console) -> None:
        store = _init_project(tmp_project_dir, quiet_console)
        _create_api(store, Resource(group="apps", version="v1", kind="Frontend"), quiet_console)

        sample = yaml.safe_load(_read(tmp_project_dir, "config/samples/apps_v1_frontend.yaml"))
        assert sample["apiVersion"] == "apps.example.com/v1"
        assert sample["kind"] == "Frontend"
        for rel in (
            "config/rbac/frontend_editor_role.yaml",
            "config/rbac/frontend_viewer_role.yaml",
            "config/crd/patches/webhook_in_frontends.yaml",
            "config/crd/patches/cainjection_in_frontends.yaml",
            "config/crd/kustomizeconfig.yaml",
        ):
            assert yaml.safe_load(_read(tmp_project_dir, rel)) is not None, rel

    def test_two_resources_share_shared_files(self, tmp_project_dir: Path, quiet_console) -> None:
        store = _init_project(tmp_project_dir, quiet_console)
        _create_api(store, Resource(group="apps", version="v1", kind="Frontend"), quiet_console)
        _create_api(store, Resource(group="apps", version="v1", kind="Backend"), quiet_console)

        main = _read(tmp_project_dir, "main.go")
        assert main.count('appsv1 "github.com/example/guestbook/api/v1"') == 1
        assert main.count("_ = appsv1.AddToScheme(scheme)") == 1
        assert "FrontendReconciler" in main
        assert "BackendReconciler" in main

        suite = _read(tmp_project_dir, "controllers/suite_test.go")
        assert suite.count("err = appsv1.AddToScheme(scheme.Scheme)") == 1

        kustomization = yaml.safe_load(_read(tmp_project_dir, "config/crd/kustomization.yaml"))
        assert kustomization["resources"] == [
            "bases/apps.example.com_frontends.yaml",
            "bases/apps.example.com_backends.yaml",
        ]
        assert [r["kind"] for r in yaml.safe_load(_read(tmp_project_dir, "PROJECT"))["resources"]] == [
            "Frontend",
            "Backend",
        ]

    def test_with_plugins(self, tmp_project_dir: Path, quiet_console) -> None:
        store = _init_project(tmp_project_dir, quiet_console)
        plugins = [
            LicenseHeaderPlugin("SPDX-License-Identifier: Apache-2.0"),
            WhitespacePlugin(),
            WebhookAnnotationGuard(),
        ]
        _create_api(store, Resource(group="apps", version="v1", kind="Frontend"), quiet_console, plugins=plugins)

        types = _read(tmp_project_dir, "api/v1/frontend_types.go")
        assert types.startswith("// SPDX-License-Identifier: Apache-2.0\n\n/*\nCopyright 2026 Example.")
        assert types.endswith("}\n")
        assert not types.endswith("\n\n")
        # The kustomize batch runs without plugins
        assert "SPDX" not in _read(tmp_project_dir, "config/crd/kustomization.yaml")

    def test_generated_files_follow_umask(self, tmp_project_dir: Path, quiet_console) -> None:
        previous = os.umask(0o022)
        try:
            store = _init_project(tmp_project_dir, quiet_console)
            _create_api(store, Resource(group="apps", version="v1", kind="Frontend"), quiet_console)
        finally:
            os.umask(previous)

        for rel in ("PROJECT", "main.go", "api/v1/frontend_types.go", "config/crd/kustomization.yaml"):
            assert stat.S_IMODE((tmp_project_dir / rel).stat().st_mode) == 0o644, rel


@pytest.mark.integration
class TestV2Multigroup:
    """Same as the single-group scenario with the multigroup layout."""

    def test_group_segment_in_paths(self, tmp_project_dir: Path, quiet_console) -> None:
        store = _init_project(tmp_project_dir, quiet_console, multigroup=True)
        paths = _create_api(store, Resource(group="apps", version="v1", kind="Frontend"), quiet_console)

        assert Path("apis/apps/v1/frontend_types.go") in paths
        assert Path("controllers/apps/frontend_controller.go") in paths
        assert "package apps\n" in _read(tmp_project_dir, "controllers/apps/frontend_controller.go")

        main = _read(tmp_project_dir, "main.go")
        assert 'appsv1 "github.com/example/guestbook/apis/apps/v1"' in main
        assert 'appscontroller "github.com/example/guestbook/controllers/apps"' in main
        assert "(&appscontroller.FrontendReconciler{" in main

        suite = _read(tmp_project_dir, "controllers/apps/suite_test.go")
        assert 'filepath.Join("..", "..", "config", "crd", "bases")' in suite
        assert 'appsv1 "github.com/example/guestbook/apis/apps/v1"' in suite


@pytest.mark.integration
class TestV1:
    """V1 project, controller only."""

    def test_no_types_and_no_example_body(self, tmp_project_dir: Path, quiet_console) -> None:
        store = _init_project(tmp_project_dir, quiet_console, version="1")
        resource = Resource(group="apps", version="v1", kind="Frontend")
        config = store.load()
        scaffolder = APIScaffolder(config, resource, store, do_resource=False, console=quiet_console)
        paths = scaffolder.scaffold()

        assert resource.create_example_reconcile_body is False
        assert not any("_types" in p.name for p in paths)
        assert not (tmp_project_dir / "pkg/apis/apps").exists()

        controller = _read(tmp_project_dir, "pkg/controller/frontend/frontend_controller.go")
        assert "appsv1.Deployment" not in controller
        assert "controllerutil.SetControllerReference" not in controller

        # V1 never merge-updates the manager entry point
        assert "frontend" not in _read(tmp_project_dir, "cmd/manager/main.go").lower()

    def test_full_v1_resource(self, tmp_project_dir: Path, quiet_console) -> None:
        store = _init_project(tmp_project_dir, quiet_console, version="1")
        paths = _create_api(store, Resource(group="apps", version="v1", kind="Frontend"), quiet_console)

        assert Path("pkg/apis/apps/v1/frontend_types.go") in paths
        assert Path("pkg/apis/addtoscheme_apps_v1.go") in paths
        assert Path("pkg/controller/add_frontend.go") in paths
        assert "appsv1.Deployment" in _read(tmp_project_dir, "pkg/controller/frontend/frontend_controller.go")
        # Nothing was registered
        assert "resources" not in yaml.safe_load(_read(tmp_project_dir, "PROJECT"))


@pytest.mark.integration
class TestIdempotentRegistration:
    """Re-running the registration step with the same descriptor."""

    def test_second_run_does_not_persist(self, tmp_project_dir: Path, quiet_console) -> None:
        store = _init_project(tmp_project_dir, quiet_console)
        config = store.load()
        spy = MagicMock(wraps=store)
        resource = Resource(group="apps", version="v1", kind="Frontend")

        APIScaffolder(config, resource, spy, project_dir=tmp_project_dir, console=quiet_console).scaffold()
        registered = [r.key() for r in config.resources]
        kustomization = _read(tmp_project_dir, "config/crd/kustomization.yaml")
        main = _read(tmp_project_dir, "main.go")

        APIScaffolder(
            config, resource, spy, project_dir=tmp_project_dir, overwrite=True, console=quiet_console
        ).scaffold()

        assert spy.save.call_count == 1
        assert [r.key() for r in config.resources] == registered
        assert _read(tmp_project_dir, "config/crd/kustomization.yaml") == kustomization
        assert _read(tmp_project_dir, "main.go") == main


# ---------------------------------------------------------------------------
# Failure behaviour
# ---------------------------------------------------------------------------

@pytest.mark.integration
class TestFailures:
    def test_missing_marker_leaves_main_unchanged(self, tmp_project_dir: Path, quiet_console) -> None:
        store = _init_project(tmp_project_dir, quiet_console)
        main_path = tmp_project_dir / "main.go"
        edited = main_path.read_text().replace("\t// +kubebuilder:scaffold:builder\n", "")
        main_path.write_text(edited)
        before = main_path.read_bytes()

        with pytest.raises(MergeError, match="^error updating main.go: marker // \\+kubebuilder:scaffold:builder"):
            _create_api(store, Resource(group="apps", version="v1", kind="Frontend"), quiet_console)

        assert main_path.read_bytes() == before
        # Generation itself succeeded; only the wiring failed
        assert (tmp_project_dir / "controllers/frontend_controller.go").is_file()

    def test_duplicated_marker_fails_closed(self, tmp_project_dir: Path, quiet_console) -> None:
        store = _init_project(tmp_project_dir, quiet_console)
        main_path = tmp_project_dir / "main.go"
        main_path.write_text(main_path.read_text() + "// +kubebuilder:scaffold:imports\n")
        before = main_path.read_bytes()

        with pytest.raises(MergeError, match="appears 2 times"):
            _create_api(store, Resource(group="apps", version="v1", kind="Frontend"), quiet_console)
        assert main_path.read_bytes() == before

    def test_unknown_version_writes_nothing(self, tmp_project_dir: Path, quiet_console) -> None:
        store = _init_project(tmp_project_dir, quiet_console)
        project = yaml.safe_load(_read(tmp_project_dir, "PROJECT"))
        project["version"] = "3"
        (tmp_project_dir / "PROJECT").write_text(yaml.safe_dump(project))
        before = sorted(p.relative_to(tmp_project_dir) for p in tmp_project_dir.rglob("*"))

        with pytest.raises(ConfigurationError, match="unknown project version 3"):
            _create_api(store, Resource(group="apps", version="v1", kind="Frontend"), quiet_console)

        assert sorted(p.relative_to(tmp_project_dir) for p in tmp_project_dir.rglob("*")) == before


# ---------------------------------------------------------------------------
# Settings-driven run
# ---------------------------------------------------------------------------

@pytest.mark.integration
class TestSettingsDrivenRun:
    def test_from_env(self, tmp_project_dir: Path) -> None:
        env = {"KUBESCAFFOLD_PROJECT_DIR": str(tmp_project_dir), "KUBESCAFFOLD_QUIET": "true"}
        with patch.dict(os.environ, env, clear=False):
            settings = Settings.from_env()

        console = get_console(settings.quiet)
        store = settings.store()
        config = ProjectConfig(domain="example.com", repo="github.com/example/guestbook")
        ProjectScaffolder(config, store, console=console).scaffold()

        paths = APIScaffolder(
            store.load(),
            Resource(group="batch", version="v1beta1", kind="CronJob"),
            store,
            overwrite=settings.overwrite,
            console=console,
        ).scaffold()

        assert Path("api/v1beta1/cronjob_types.go") in paths
        assert "CronJobReconciler" in _read(tmp_project_dir, "main.go")
