"""The universe: the immutable rendering context shared by a template batch.

A universe snapshots the project configuration and the resource at the time
it is built.  It is never updated in place: after the configuration is
mutated and persisted (e.g. a resource was just registered) the caller builds
a new one.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..config import ProjectConfig
from ..errors import ConfigurationError
from ..utils import import_alias, package_name
from .resource import Resource


class ResourceView(BaseModel):
    """Template-facing view of a resource, with version-aware derived values."""

    model_config = ConfigDict(frozen=True)

    group: str
    version: str
    kind: str
    kind_lower: str
    plural: str
    namespaced: bool
    create_example_reconcile_body: bool
    external: bool = Field(default=False, description="Whether the type comes from an upstream API group")
    group_domain: str = Field(..., description="Fully-qualified API group, '<group>.<domain>'")
    group_package_name: str = Field(..., description="Go package name for the group")
    import_alias: str = Field(..., description="Go import alias for the API package")
    package: str = Field(..., description="Go import path of the API package")
    controller_package: str = Field(..., description="Go import path of the controller package")


class Universe(BaseModel):
    """Rendering context for one batch of templates.

    ``resource`` is ``None`` only for project-level batches, which render
    before any resource exists.
    """

    model_config = ConfigDict(frozen=True)

    config: ProjectConfig
    resource: Optional[ResourceView] = None
    boilerplate: str = ""

    def context(self) -> dict[str, Any]:
        """Build the Jinja2 template context."""
        return {
            "config": self.config,
            "resource": self.resource,
            "boilerplate": self.boilerplate.rstrip("\n"),
            "domain": self.config.domain,
            "repo": self.config.repo,
            "multigroup": self.config.multigroup,
        }


# Built-in Kubernetes API groups and their domain.  A V2 controller for one of
# these groups that is not registered in the project watches the upstream type.
CORE_GROUPS: dict[str, str] = {
    "admission": "k8s.io",
    "admissionregistration": "k8s.io",
    "apps": "",
    "auditregistration": "k8s.io",
    "apiextensions": "k8s.io",
    "authentication": "k8s.io",
    "authorization": "k8s.io",
    "autoscaling": "",
    "batch": "",
    "certificates": "k8s.io",
    "coordination": "k8s.io",
    "core": "",
    "events": "k8s.io",
    "extensions": "",
    "imagepolicy": "k8s.io",
    "networking": "k8s.io",
    "node": "k8s.io",
    "metrics": "k8s.io",
    "policy": "",
    "rbac": "k8s.io",
    "scheduling": "k8s.io",
    "setting": "k8s.io",
    "storage": "k8s.io",
}


def _is_external(config: ProjectConfig, res: Resource) -> bool:
    return config.is_v2() and res.group in CORE_GROUPS and not config.has_resource(res)


def _group_domain(config: ProjectConfig, res: Resource) -> str:
    if _is_external(config, res):
        if res.group == "core":
            return ""
        domain = CORE_GROUPS[res.group]
        return f"{res.group}.{domain}" if domain else res.group
    return f"{res.group}.{config.domain}"


def _packages(config: ProjectConfig, res: Resource) -> tuple[str, str]:
    """Return the (API package, controller package) import paths for *res*."""
    repo = config.repo.rstrip("/")
    if config.is_v1():
        return (
            f"{repo}/pkg/apis/{res.group}/{res.version}",
            f"{repo}/pkg/controller/{res.kind_lower}",
        )
    controller_package = f"{repo}/controllers/{res.group}" if config.multigroup else f"{repo}/controllers"
    if _is_external(config, res):
        return f"k8s.io/api/{res.group}/{res.version}", controller_package
    if config.multigroup:
        return f"{repo}/apis/{res.group}/{res.version}", controller_package
    return f"{repo}/api/{res.version}", controller_package


def _check_config(config: ProjectConfig) -> None:
    if not config.domain:
        raise ConfigurationError("project config has no domain")
    if not config.repo:
        raise ConfigurationError("project config has no repo")


def build_universe(
    config: ProjectConfig,
    resource: Resource,
    boilerplate: str | None = None,
) -> Universe:
    """Assemble a ``Universe`` from the project config and the resource.

    Pure function of its inputs: both are copied, so later mutations of the
    arguments do not leak into the returned universe.

    Args:
        config: Loaded project configuration.
        resource: The resource being scaffolded.
        boilerplate: License header for generated files.  Defaults to
            ``config.boilerplate``.

    Raises:
        ConfigurationError: If the config lacks a domain or repo, or the
            resource is invalid.
    """
    if config is None or resource is None:
        raise ConfigurationError("a project config and a resource are required")
    _check_config(config)
    resource.validate_resource()

    api_package, controller_package = _packages(config, resource)
    view = ResourceView(
        group=resource.group,
        version=resource.version,
        kind=resource.kind,
        kind_lower=resource.kind_lower,
        plural=resource.resource_plural,
        namespaced=resource.namespaced,
        create_example_reconcile_body=resource.create_example_reconcile_body,
        external=_is_external(config, resource),
        group_domain=_group_domain(config, resource),
        group_package_name=package_name(resource.group),
        import_alias=import_alias(resource.group, resource.version),
        package=api_package,
        controller_package=controller_package,
    )
    return Universe(
        config=config.model_copy(deep=True),
        resource=view,
        boilerplate=config.boilerplate if boilerplate is None else boilerplate,
    )


def build_project_universe(config: ProjectConfig, boilerplate: str | None = None) -> Universe:
    """Assemble a resource-less ``Universe`` for project-level templates.

    Raises:
        ConfigurationError: If the config lacks a domain or repo.
    """
    if config is None:
        raise ConfigurationError("a project config is required")
    _check_config(config)
    return Universe(
        config=config.model_copy(deep=True),
        boilerplate=config.boilerplate if boilerplate is None else boilerplate,
    )


__all__ = ["ResourceView", "Universe", "build_project_universe", "build_universe"]
