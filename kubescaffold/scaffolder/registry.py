"""Template set registry.

For each project schema version and artifact family the registry holds the
ordered tuple of ``TemplateUnit`` objects to render.  The V1 and V2
registries are disjoint: the two versions use incompatible layouts, so a
family missing from a version is an error rather than a fallback to the
other version's templates.

Order within a family is significant: type definitions come before their
tests, registration and group wiring before the sample manifest, and a
controller before its tests.
"""

from __future__ import annotations

from enum import Enum

from ..config import ProjectVersion
from ..errors import ConfigurationError
from ..model.universe import Universe
from .executor import IfExists, TemplateUnit


class ArtifactFamily(str, Enum):
    """Kinds of template sets a scaffold run can execute."""
    PROJECT = "project"
    API = "api"
    CONTROLLER = "controller"
    KUSTOMIZE = "kustomize"


# ---------------------------------------------------------------------------
# Path rules
# ---------------------------------------------------------------------------


def _v1_api_dir(u: Universe) -> str:
    return f"pkg/apis/{u.resource.group}/{u.resource.version}"


def _v1_controller_dir(u: Universe) -> str:
    return f"pkg/controller/{u.resource.kind_lower}"


def _v2_api_dir(u: Universe) -> str:
    if u.config.multigroup:
        return f"apis/{u.resource.group}/{u.resource.version}"
    return f"api/{u.resource.version}"


def _v2_controller_dir(u: Universe) -> str:
    if u.config.multigroup:
        return f"controllers/{u.resource.group}"
    return "controllers"


def _sample_path(u: Universe) -> str:
    r = u.resource
    return f"config/samples/{r.group}_{r.version}_{r.kind_lower}.yaml"


# ---------------------------------------------------------------------------
# V1 (pkg/apis, pkg/controller layout)
# ---------------------------------------------------------------------------

_V1_PROJECT: tuple[TemplateUnit, ...] = (
    TemplateUnit("manager-main", "v1/project/main.go.j2",
                 lambda u: "cmd/manager/main.go", IfExists.SKIP),
    TemplateUnit("apis", "v1/project/apis.go.j2",
                 lambda u: "pkg/apis/apis.go", IfExists.SKIP),
    TemplateUnit("controller-registry", "v1/project/controller.go.j2",
                 lambda u: "pkg/controller/controller.go", IfExists.SKIP),
)

_V1_API: tuple[TemplateUnit, ...] = (
    TemplateUnit("register", "v1/api/register.go.j2",
                 lambda u: f"{_v1_api_dir(u)}/register.go", IfExists.SKIP),
    TemplateUnit("types", "v1/api/types.go.j2",
                 lambda u: f"{_v1_api_dir(u)}/{u.resource.kind_lower}_types.go"),
    TemplateUnit("version-suite-test", "v1/api/version_suite_test.go.j2",
                 lambda u: f"{_v1_api_dir(u)}/{u.resource.version}_suite_test.go", IfExists.SKIP),
    TemplateUnit("types-test", "v1/api/types_test.go.j2",
                 lambda u: f"{_v1_api_dir(u)}/{u.resource.kind_lower}_types_test.go"),
    TemplateUnit("doc", "v1/api/doc.go.j2",
                 lambda u: f"{_v1_api_dir(u)}/doc.go", IfExists.SKIP),
    TemplateUnit("group", "v1/api/group.go.j2",
                 lambda u: f"pkg/apis/{u.resource.group}/group.go", IfExists.SKIP),
    TemplateUnit("add-to-scheme", "v1/api/addtoscheme.go.j2",
                 lambda u: f"pkg/apis/addtoscheme_{u.resource.group_package_name}_{u.resource.version}.go",
                 IfExists.SKIP),
    TemplateUnit("crd-sample", "v1/api/crd_sample.yaml.j2", _sample_path),
)

_V1_CONTROLLER: tuple[TemplateUnit, ...] = (
    TemplateUnit("controller", "v1/controller/controller.go.j2",
                 lambda u: f"{_v1_controller_dir(u)}/{u.resource.kind_lower}_controller.go"),
    TemplateUnit("add-controller", "v1/controller/add_controller.go.j2",
                 lambda u: f"pkg/controller/add_{u.resource.kind_lower}.go", IfExists.SKIP),
    TemplateUnit("controller-test", "v1/controller/controller_test.go.j2",
                 lambda u: f"{_v1_controller_dir(u)}/{u.resource.kind_lower}_controller_test.go"),
    TemplateUnit("controller-suite-test", "v1/controller/suite_test.go.j2",
                 lambda u: f"{_v1_controller_dir(u)}/{u.resource.kind_lower}_controller_suite_test.go",
                 IfExists.SKIP),
)


# ---------------------------------------------------------------------------
# V2 (api/ or apis/<group>/, controllers/ layout)
# ---------------------------------------------------------------------------

_V2_PROJECT: tuple[TemplateUnit, ...] = (
    TemplateUnit("main", "v2/project/main.go.j2", lambda u: "main.go", IfExists.SKIP),
    TemplateUnit("go-mod", "v2/project/go.mod.j2", lambda u: "go.mod", IfExists.SKIP),
    TemplateUnit("makefile", "v2/project/Makefile.j2", lambda u: "Makefile", IfExists.SKIP),
)

_V2_API: tuple[TemplateUnit, ...] = (
    TemplateUnit("types", "v2/api/types.go.j2",
                 lambda u: f"{_v2_api_dir(u)}/{u.resource.kind_lower}_types.go"),
    TemplateUnit("groupversion-info", "v2/api/groupversion_info.go.j2",
                 lambda u: f"{_v2_api_dir(u)}/groupversion_info.go", IfExists.SKIP),
    TemplateUnit("crd-sample", "v2/api/crd_sample.yaml.j2", _sample_path),
    TemplateUnit("crd-editor-role", "v2/api/crd_editor_role.yaml.j2",
                 lambda u: f"config/rbac/{u.resource.kind_lower}_editor_role.yaml"),
    TemplateUnit("crd-viewer-role", "v2/api/crd_viewer_role.yaml.j2",
                 lambda u: f"config/rbac/{u.resource.kind_lower}_viewer_role.yaml"),
    TemplateUnit("enable-webhook-patch", "v2/api/webhook_patch.yaml.j2",
                 lambda u: f"config/crd/patches/webhook_in_{u.resource.plural}.yaml"),
    TemplateUnit("enable-cainjection-patch", "v2/api/cainjection_patch.yaml.j2",
                 lambda u: f"config/crd/patches/cainjection_in_{u.resource.plural}.yaml"),
)

_V2_KUSTOMIZE: tuple[TemplateUnit, ...] = (
    TemplateUnit("crd-kustomization", "v2/kustomize/kustomization.yaml.j2",
                 lambda u: "config/crd/kustomization.yaml", IfExists.SKIP),
    TemplateUnit("crd-kustomizeconfig", "v2/kustomize/kustomizeconfig.yaml.j2",
                 lambda u: "config/crd/kustomizeconfig.yaml", IfExists.SKIP),
)

_V2_CONTROLLER: tuple[TemplateUnit, ...] = (
    TemplateUnit("controller", "v2/controller/controller.go.j2",
                 lambda u: f"{_v2_controller_dir(u)}/{u.resource.kind_lower}_controller.go"),
    TemplateUnit("controller-suite-test", "v2/controller/suite_test.go.j2",
                 lambda u: f"{_v2_controller_dir(u)}/suite_test.go", IfExists.SKIP),
)


_REGISTRY: dict[ProjectVersion, dict[ArtifactFamily, tuple[TemplateUnit, ...]]] = {
    ProjectVersion.V1: {
        ArtifactFamily.PROJECT: _V1_PROJECT,
        ArtifactFamily.API: _V1_API,
        ArtifactFamily.CONTROLLER: _V1_CONTROLLER,
    },
    ProjectVersion.V2: {
        ArtifactFamily.PROJECT: _V2_PROJECT,
        ArtifactFamily.API: _V2_API,
        ArtifactFamily.KUSTOMIZE: _V2_KUSTOMIZE,
        ArtifactFamily.CONTROLLER: _V2_CONTROLLER,
    },
}


def templates_for(
    version: ProjectVersion | str,
    family: ArtifactFamily | str,
) -> tuple[TemplateUnit, ...]:
    """Return the ordered template set for *family* in project *version*.

    Raises:
        ConfigurationError: For an unknown version, or a family the version
            does not define.
    """
    try:
        project_version = ProjectVersion(version)
    except ValueError:
        raise ConfigurationError(f"unknown project version {version!r}") from None
    try:
        artifact_family = ArtifactFamily(family)
    except ValueError:
        raise ConfigurationError(f"unknown artifact family {family!r}") from None

    families = _REGISTRY[project_version]
    if artifact_family not in families:
        raise ConfigurationError(
            f"project version {project_version.value} has no {artifact_family.value} templates"
        )
    return families[artifact_family]
