"""Cross-file wiring for V2 projects.

After a batch has been written, three shared files need to learn about the
new resource or controller:

* ``config/crd/kustomization.yaml`` -- the CRD base and its (commented out)
  webhook and CA-injection patches;
* the controller package's ``suite_test.go`` -- the API import and its
  scheme registration;
* ``main.go`` -- the API import and scheme registration, the controller
  import, and the reconciler setup.

Fragments are rendered from small inline templates against the batch's
universe and spliced in with the marker merge-updater.  Each updater returns
the project-relative path it rewrote, or ``None`` when there was nothing to
add.
"""

from __future__ import annotations

from pathlib import Path

from ..errors import MergeError
from ..model.universe import Universe
from .markers import Marker, contains_fragment, insert_fragments
from .templates import TemplateRenderer

KUSTOMIZATION_PATH = Path("config/crd/kustomization.yaml")
MAIN_PATH = Path("main.go")

RESOURCE_MARKER = Marker.for_path(KUSTOMIZATION_PATH, "crdkustomizeresource")
WEBHOOK_PATCH_MARKER = Marker.for_path(KUSTOMIZATION_PATH, "crdkustomizewebhookpatch")
CAINJECTION_PATCH_MARKER = Marker.for_path(KUSTOMIZATION_PATH, "crdkustomizecainjectionpatch")

IMPORTS_MARKER = Marker("imports")
SCHEME_MARKER = Marker("scheme")
BUILDER_MARKER = Marker("builder")


# ---------------------------------------------------------------------------
# Fragment templates
# ---------------------------------------------------------------------------

_KUSTOMIZE_RESOURCE = "- bases/{{ resource.group_domain }}_{{ resource.plural }}.yaml"
_KUSTOMIZE_WEBHOOK_PATCH = "#- patches/webhook_in_{{ resource.plural }}.yaml"
_KUSTOMIZE_CAINJECTION_PATCH = "#- patches/cainjection_in_{{ resource.plural }}.yaml"

_API_IMPORT = '\t{{ resource.import_alias }} "{{ resource.package }}"'

_SUITE_ADD_SCHEME = """\
\terr = {{ resource.import_alias }}.AddToScheme(scheme.Scheme)
\tExpect(err).NotTo(HaveOccurred())
"""

_MAIN_ADD_SCHEME = "\t_ = {{ resource.import_alias }}.AddToScheme(scheme)"

_CONTROLLER_IMPORT = """\
{% if multigroup %}
\t{{ resource.group_package_name }}controller "{{ resource.controller_package }}"
{% else %}
\t"{{ resource.controller_package }}"
{% endif %}"""

_RECONCILER_SETUP = """\
{% set pkg = resource.group_package_name ~ "controller" if multigroup else "controllers" %}
\tif err = (&{{ pkg }}.{{ resource.kind }}Reconciler{
\t\tClient: mgr.GetClient(),
\t\tLog:    ctrl.Log.WithName("controllers").WithName("{{ resource.kind }}"),
\t\tScheme: mgr.GetScheme(),
\t}).SetupWithManager(mgr); err != nil {
\t\tsetupLog.Error(err, "unable to create controller", "controller", "{{ resource.kind }}")
\t\tos.Exit(1)
\t}
"""


def _render(renderer: TemplateRenderer, template: str, universe: Universe) -> str:
    return renderer.render_string(template, universe.context())


def suite_test_path(universe: Universe) -> Path:
    """Project-relative path of the controller package's ``suite_test.go``."""
    if universe.config.multigroup:
        return Path("controllers") / universe.resource.group / "suite_test.go"
    return Path("controllers") / "suite_test.go"


def _missing(content: str, fragments: dict[Marker, list[str]]) -> dict[Marker, list[str]]:
    """Drop fragments that are already present in *content*."""
    return {
        marker: [f for f in values if not contains_fragment(content, f)]
        for marker, values in fragments.items()
    }


def _splice(project_dir: Path, rel_path: Path, fragments: dict[Marker, list[str]]) -> Path | None:
    if not any(fragments.values()):
        return None
    insert_fragments(project_dir / rel_path, fragments)
    return rel_path


# ---------------------------------------------------------------------------
# Updaters
# ---------------------------------------------------------------------------


def update_kustomization(
    project_dir: str | Path,
    universe: Universe,
    renderer: TemplateRenderer | None = None,
) -> Path | None:
    """Add the new CRD and its patches to ``config/crd/kustomization.yaml``.

    Callers only invoke this for a resource that was just registered, so
    the fragments are not checked for prior presence.

    Raises:
        MergeError: The file or one of its markers is missing.
    """
    renderer = renderer or TemplateRenderer()
    fragments = {
        RESOURCE_MARKER: [_render(renderer, _KUSTOMIZE_RESOURCE, universe)],
        WEBHOOK_PATCH_MARKER: [_render(renderer, _KUSTOMIZE_WEBHOOK_PATCH, universe)],
        CAINJECTION_PATCH_MARKER: [_render(renderer, _KUSTOMIZE_CAINJECTION_PATCH, universe)],
    }
    return _splice(Path(project_dir), KUSTOMIZATION_PATH, fragments)


def update_suite_test(
    project_dir: str | Path,
    universe: Universe,
    renderer: TemplateRenderer | None = None,
) -> Path | None:
    """Register the resource's API package with the controller test suite.

    Only resources registered in the project are wired; a controller for an
    upstream type has no CRD to install into the test environment.
    """
    resource = universe.resource
    if resource.external or not universe.config.has_resource(resource):
        return None

    renderer = renderer or TemplateRenderer()
    rel_path = suite_test_path(universe)
    target = Path(project_dir) / rel_path
    if not target.is_file():
        raise MergeError(f"unable to update {rel_path}: file does not exist", path=rel_path)

    fragments = _missing(target.read_text(encoding="utf-8"), {
        IMPORTS_MARKER: [_render(renderer, _API_IMPORT, universe)],
        SCHEME_MARKER: [_render(renderer, _SUITE_ADD_SCHEME, universe)],
    })
    return _splice(Path(project_dir), rel_path, fragments)


def update_main(
    project_dir: str | Path,
    universe: Universe,
    wire_resource: bool,
    wire_controller: bool,
    renderer: TemplateRenderer | None = None,
) -> Path | None:
    """Wire the generated resource and/or controller into ``main.go``.

    ``main.go`` must exist even when there is nothing to wire.

    Raises:
        MergeError: ``main.go`` or one of its markers is missing.
    """
    target = Path(project_dir) / MAIN_PATH
    if not target.is_file():
        raise MergeError(f"unable to update {MAIN_PATH}: file does not exist", path=MAIN_PATH)

    renderer = renderer or TemplateRenderer()
    fragments: dict[Marker, list[str]] = {IMPORTS_MARKER: [], SCHEME_MARKER: [], BUILDER_MARKER: []}
    if wire_resource:
        fragments[IMPORTS_MARKER].append(_render(renderer, _API_IMPORT, universe))
        fragments[SCHEME_MARKER].append(_render(renderer, _MAIN_ADD_SCHEME, universe))
    if wire_controller:
        fragments[IMPORTS_MARKER].append(_render(renderer, _CONTROLLER_IMPORT, universe))
        fragments[BUILDER_MARKER].append(_render(renderer, _RECONCILER_SETUP, universe))

    fragments = _missing(target.read_text(encoding="utf-8"), fragments)
    return _splice(Path(project_dir), MAIN_PATH, fragments)
