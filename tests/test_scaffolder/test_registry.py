"""Tests for the template set registry (kubescaffold.scaffolder.registry).

Covers:
- Fixed per-family ordering for V1 and V2
- Path layouts per version and multigroup setting
- Disjoint registries and configuration errors
"""

from __future__ import annotations

from pathlib import Path

import pytest

from kubescaffold.config import ProjectVersion
from kubescaffold.errors import ConfigurationError
from kubescaffold.model.universe import build_project_universe, build_universe
from kubescaffold.scaffolder.executor import IfExists
from kubescaffold.scaffolder.registry import ArtifactFamily, templates_for

pytestmark = pytest.mark.unit


def _identities(version, family) -> list[str]:
    return [unit.identity for unit in templates_for(version, family)]


def _paths(universe, version, family) -> list[Path]:
    return [unit.path_for(universe) for unit in templates_for(version, family)]


class TestOrdering:
    def test_v1_api(self):
        assert _identities(ProjectVersion.V1, ArtifactFamily.API) == [
            "register",
            "types",
            "version-suite-test",
            "types-test",
            "doc",
            "group",
            "add-to-scheme",
            "crd-sample",
        ]

    def test_v1_controller(self):
        assert _identities(ProjectVersion.V1, ArtifactFamily.CONTROLLER) == [
            "controller",
            "add-controller",
            "controller-test",
            "controller-suite-test",
        ]

    def test_v2_api(self):
        assert _identities(ProjectVersion.V2, ArtifactFamily.API) == [
            "types",
            "groupversion-info",
            "crd-sample",
            "crd-editor-role",
            "crd-viewer-role",
            "enable-webhook-patch",
            "enable-cainjection-patch",
        ]

    def test_v2_controller_before_suite_test(self):
        assert _identities(ProjectVersion.V2, ArtifactFamily.CONTROLLER) == [
            "controller",
            "controller-suite-test",
        ]

    def test_v2_kustomize(self):
        assert _identities(ProjectVersion.V2, ArtifactFamily.KUSTOMIZE) == [
            "crd-kustomization",
            "crd-kustomizeconfig",
        ]

    def test_repeated_lookups_are_stable(self):
        assert templates_for("2", "api") == templates_for(ProjectVersion.V2, ArtifactFamily.API)


class TestPathLayouts:
    def test_v2_single_group(self, v2_config, frontend):
        v2_config.add_resource(frontend)
        universe = build_universe(v2_config, frontend)
        assert _paths(universe, ProjectVersion.V2, ArtifactFamily.API)[:3] == [
            Path("api/v1/frontend_types.go"),
            Path("api/v1/groupversion_info.go"),
            Path("config/samples/apps_v1_frontend.yaml"),
        ]
        assert _paths(universe, ProjectVersion.V2, ArtifactFamily.CONTROLLER) == [
            Path("controllers/frontend_controller.go"),
            Path("controllers/suite_test.go"),
        ]

    def test_v2_multigroup(self, v2_multigroup_config, frontend):
        v2_multigroup_config.add_resource(frontend)
        universe = build_universe(v2_multigroup_config, frontend)
        assert _paths(universe, ProjectVersion.V2, ArtifactFamily.API)[0] == Path("apis/apps/v1/frontend_types.go")
        assert _paths(universe, ProjectVersion.V2, ArtifactFamily.CONTROLLER) == [
            Path("controllers/apps/frontend_controller.go"),
            Path("controllers/apps/suite_test.go"),
        ]

    def test_v2_patches_use_plural(self, v2_config, frontend):
        universe = build_universe(v2_config, frontend)
        paths = _paths(universe, ProjectVersion.V2, ArtifactFamily.API)
        assert Path("config/crd/patches/webhook_in_frontends.yaml") in paths
        assert Path("config/crd/patches/cainjection_in_frontends.yaml") in paths

    def test_v1(self, v1_config, frontend):
        universe = build_universe(v1_config, frontend)
        assert _paths(universe, ProjectVersion.V1, ArtifactFamily.API) == [
            Path("pkg/apis/apps/v1/register.go"),
            Path("pkg/apis/apps/v1/frontend_types.go"),
            Path("pkg/apis/apps/v1/v1_suite_test.go"),
            Path("pkg/apis/apps/v1/frontend_types_test.go"),
            Path("pkg/apis/apps/v1/doc.go"),
            Path("pkg/apis/apps/group.go"),
            Path("pkg/apis/addtoscheme_apps_v1.go"),
            Path("config/samples/apps_v1_frontend.yaml"),
        ]
        assert _paths(universe, ProjectVersion.V1, ArtifactFamily.CONTROLLER) == [
            Path("pkg/controller/frontend/frontend_controller.go"),
            Path("pkg/controller/add_frontend.go"),
            Path("pkg/controller/frontend/frontend_controller_test.go"),
            Path("pkg/controller/frontend/frontend_controller_suite_test.go"),
        ]

    def test_project_paths(self, v2_config):
        universe = build_project_universe(v2_config)
        assert _paths(universe, ProjectVersion.V2, ArtifactFamily.PROJECT) == [
            Path("main.go"),
            Path("go.mod"),
            Path("Makefile"),
        ]
        assert _paths(universe, ProjectVersion.V1, ArtifactFamily.PROJECT) == [
            Path("cmd/manager/main.go"),
            Path("pkg/apis/apis.go"),
            Path("pkg/controller/controller.go"),
        ]


class TestPolicies:
    def test_per_resource_files_fail_loudly(self):
        units = {u.identity: u for u in templates_for(ProjectVersion.V2, ArtifactFamily.API)}
        assert units["types"].if_exists is IfExists.ERROR
        assert units["groupversion-info"].if_exists is IfExists.SKIP

    def test_shared_files_are_skipped(self):
        for unit in templates_for(ProjectVersion.V2, ArtifactFamily.KUSTOMIZE):
            assert unit.if_exists is IfExists.SKIP
        for unit in templates_for(ProjectVersion.V2, ArtifactFamily.PROJECT):
            assert unit.if_exists is IfExists.SKIP


class TestErrors:
    @pytest.mark.parametrize("version", ["3", "", "v2"])
    def test_unknown_version(self, version):
        with pytest.raises(ConfigurationError, match="unknown project version"):
            templates_for(version, ArtifactFamily.API)

    def test_unknown_family(self):
        with pytest.raises(ConfigurationError, match="unknown artifact family"):
            templates_for(ProjectVersion.V2, "webhook")

    def test_no_fallback_between_versions(self):
        with pytest.raises(ConfigurationError, match="project version 1 has no kustomize templates"):
            templates_for(ProjectVersion.V1, ArtifactFamily.KUSTOMIZE)

    def test_registries_are_disjoint(self):
        v1 = {u.template for f in (ArtifactFamily.API, ArtifactFamily.CONTROLLER) for u in templates_for("1", f)}
        v2 = {u.template for f in (ArtifactFamily.API, ArtifactFamily.CONTROLLER) for u in templates_for("2", f)}
        assert v1.isdisjoint(v2)
