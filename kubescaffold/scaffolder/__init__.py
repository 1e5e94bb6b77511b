"""kubescaffold scaffolder -- renders and wires Kubernetes API projects.

A project is initialised once with ``ProjectScaffolder`` and then grown one
resource at a time with ``APIScaffolder``, which dispatches to the V1 or V2
strategy of the project's schema version.

Quick usage::

    from kubescaffold.config import Settings
    from kubescaffold.model import Resource
    from kubescaffold.scaffolder import APIScaffolder, WhitespacePlugin

    settings = Settings.from_env()
    store = settings.store()
    scaffolder = APIScaffolder(
        store.load(),
        Resource(group="apps", version="v1", kind="Frontend"),
        store,
        plugins=[WhitespacePlugin()],
    )
    written = scaffolder.scaffold()
"""

from kubescaffold.scaffolder.api import APIScaffolder, ScaffoldState
from kubescaffold.scaffolder.executor import IfExists, RenderedFile, Scaffold, TemplateUnit
from kubescaffold.scaffolder.markers import Marker, insert_fragments, update
from kubescaffold.scaffolder.plugins import (
    LicenseHeaderPlugin,
    Plugin,
    WebhookAnnotationGuard,
    WhitespacePlugin,
)
from kubescaffold.scaffolder.project import ProjectScaffolder
from kubescaffold.scaffolder.registry import ArtifactFamily, templates_for
from kubescaffold.scaffolder.templates import TemplateRenderer

__all__ = [
    "APIScaffolder",
    "ArtifactFamily",
    "IfExists",
    "LicenseHeaderPlugin",
    "Marker",
    "Plugin",
    "ProjectScaffolder",
    "RenderedFile",
    "Scaffold",
    "ScaffoldState",
    "TemplateRenderer",
    "TemplateUnit",
    "WebhookAnnotationGuard",
    "WhitespacePlugin",
    "insert_fragments",
    "templates_for",
    "update",
]
