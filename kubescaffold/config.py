"""kubescaffold configuration.

Two layers of configuration live here:

* ``ProjectConfig`` -- the persisted description of a scaffolded project (its
  schema version, domain, repository, multigroup layout, and the resources
  registered so far), stored as the YAML ``PROJECT`` file at the project
  root and accessed through ``ProjectStore``.
* ``Settings`` -- per-invocation knobs (where the project lives, existing-file
  policy, output verbosity) that can be built from environment variables.

All models use Pydantic v2 so they are validated at construction time.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any, TYPE_CHECKING

import yaml
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigurationError, PersistenceError
from .utils import atomic_write

if TYPE_CHECKING:
    from .model.resource import Resource


DEFAULT_PROJECT_FILE = "PROJECT"
DEFAULT_BOILERPLATE_FILE = "hack/boilerplate.go.txt"


class ProjectVersion(str, Enum):
    """Supported project schema versions."""
    V1 = "1"
    V2 = "2"


# ---------------------------------------------------------------------------
# Project configuration (the PROJECT file)
# ---------------------------------------------------------------------------


class GroupVersionKind(BaseModel):
    """Identity of a registered API resource."""
    group: str = Field(..., description="API group, e.g. 'apps'")
    version: str = Field(..., description="API version, e.g. 'v1'")
    kind: str = Field(..., description="Resource kind, e.g. 'Frontend'")

    def key(self) -> tuple[str, str, str]:
        return (self.group, self.version, self.kind)


class ProjectConfig(BaseModel):
    """Persisted project configuration.

    ``version`` is deliberately a plain string: a ``PROJECT`` file written by
    a newer tool must still load so that the dispatcher can report it as an
    unknown version instead of failing inside the YAML parser.
    """

    version: str = Field(default=ProjectVersion.V2.value, description="Project schema version")
    domain: str = Field(default="", description="Domain suffix for API groups")
    repo: str = Field(default="", description="Go import path of the project")
    multigroup: bool = Field(default=False, description="Whether APIs live under apis/<group>/")
    resources: list[GroupVersionKind] = Field(
        default_factory=list,
        description="Resources registered in the project, in registration order",
    )
    boilerplate: str = Field(
        default="",
        exclude=True,
        description="License header prepended to generated Go files (not persisted in PROJECT)",
    )

    # -- Version checks ----------------------------------------------------

    def is_version(self, version: ProjectVersion | str) -> bool:
        """Return ``True`` if the project uses schema *version*."""
        value = version.value if isinstance(version, ProjectVersion) else str(version)
        return self.version == value

    def is_v1(self) -> bool:
        return self.is_version(ProjectVersion.V1)

    def is_v2(self) -> bool:
        return self.is_version(ProjectVersion.V2)

    # -- Resource registry -------------------------------------------------

    def has_resource(self, gvk: GroupVersionKind | Resource) -> bool:
        """Return ``True`` if a resource with the same group/version/kind is registered."""
        key = (gvk.group, gvk.version, gvk.kind)
        return any(r.key() == key for r in self.resources)

    def add_resource(self, resource: GroupVersionKind | Resource) -> bool:
        """Register *resource* unless it is already present.

        Returns:
            ``True`` if the resource was added, ``False`` if it was already
            registered (the list is left unchanged).
        """
        if self.has_resource(resource):
            return False
        self.resources.append(
            GroupVersionKind(group=resource.group, version=resource.version, kind=resource.kind)
        )
        return True

    # -- Serialisation helpers ---------------------------------------------

    def to_yaml(self) -> str:
        """Render the ``PROJECT`` file body."""
        data: dict[str, Any] = {
            "domain": self.domain,
            "repo": self.repo,
        }
        if self.multigroup:
            data["multigroup"] = True
        if self.resources:
            data["resources"] = [r.model_dump() for r in self.resources]
        data["version"] = self.version
        return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)

    @classmethod
    def from_yaml(cls, text: str) -> "ProjectConfig":
        """Parse a ``PROJECT`` file body.

        Raises:
            ConfigurationError: If the text is not a YAML mapping or does not
                validate.
        """
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"invalid PROJECT file: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError("invalid PROJECT file: expected a mapping at the top level")
        if "version" in data and data["version"] is not None:
            data["version"] = str(data["version"])
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(f"invalid PROJECT file: {exc}") from exc


class ProjectStore:
    """Loads and saves the ``PROJECT`` file of one project directory.

    The boilerplate header is kept in its own file (``hack/boilerplate.go.txt``
    by default) and is read into ``ProjectConfig.boilerplate`` on load.
    """

    def __init__(
        self,
        project_dir: str | Path,
        project_file: str = DEFAULT_PROJECT_FILE,
        boilerplate_file: str = DEFAULT_BOILERPLATE_FILE,
    ) -> None:
        self.project_dir = Path(project_dir)
        self.project_file = project_file
        self.boilerplate_file = boilerplate_file

    @property
    def path(self) -> Path:
        """Path to the ``PROJECT`` file."""
        return self.project_dir / self.project_file

    @property
    def boilerplate_path(self) -> Path:
        """Path to the boilerplate header file."""
        return self.project_dir / self.boilerplate_file

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> ProjectConfig:
        """Load the project configuration.

        Raises:
            ConfigurationError: If the ``PROJECT`` file is missing or invalid.
        """
        if not self.path.is_file():
            raise ConfigurationError(
                f"unable to find {self.project_file} in {self.project_dir}; "
                "is this a scaffolded project?"
            )
        config = ProjectConfig.from_yaml(self.path.read_text(encoding="utf-8"))
        if self.boilerplate_path.is_file():
            config.boilerplate = self.boilerplate_path.read_text(encoding="utf-8")
        return config

    def save(self, config: ProjectConfig) -> Path:
        """Atomically rewrite the ``PROJECT`` file.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        try:
            return atomic_write(self.path, config.to_yaml())
        except OSError as exc:
            raise PersistenceError(
                f"unable to write {self.project_file}: {exc}", path=self.project_file
            ) from exc

    def save_boilerplate(self, boilerplate: str) -> Path:
        """Write the boilerplate header file."""
        try:
            return atomic_write(self.boilerplate_path, boilerplate)
        except OSError as exc:
            raise PersistenceError(
                f"unable to write {self.boilerplate_file}: {exc}", path=self.boilerplate_file
            ) from exc


# ---------------------------------------------------------------------------
# Invocation settings
# ---------------------------------------------------------------------------

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str) -> bool | None:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip().lower() in _TRUTHY


class Settings(BaseModel):
    """Per-invocation settings for a scaffold run.

    Instances are typically created once by the invoking layer and handed to
    the scaffolders together with the loaded ``ProjectConfig``.
    """

    project_dir: Path = Field(default=Path("."))
    project_file: str = Field(default=DEFAULT_PROJECT_FILE)
    boilerplate_file: str = Field(default=DEFAULT_BOILERPLATE_FILE)
    overwrite: bool = Field(
        default=False,
        description="Overwrite existing files on fresh scaffolds instead of failing",
    )
    quiet: bool = Field(default=False, description="Suppress progress output")

    def store(self) -> ProjectStore:
        """Return the ``ProjectStore`` for ``project_dir``."""
        return ProjectStore(self.project_dir, self.project_file, self.boilerplate_file)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build ``Settings`` from environment variables.

        Recognised variables (all optional):
            KUBESCAFFOLD_PROJECT_DIR, KUBESCAFFOLD_PROJECT_FILE,
            KUBESCAFFOLD_BOILERPLATE_FILE, KUBESCAFFOLD_OVERWRITE,
            KUBESCAFFOLD_QUIET.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("KUBESCAFFOLD_PROJECT_DIR"):
            kwargs["project_dir"] = Path(os.environ["KUBESCAFFOLD_PROJECT_DIR"])
        if os.environ.get("KUBESCAFFOLD_PROJECT_FILE"):
            kwargs["project_file"] = os.environ["KUBESCAFFOLD_PROJECT_FILE"]
        if os.environ.get("KUBESCAFFOLD_BOILERPLATE_FILE"):
            kwargs["boilerplate_file"] = os.environ["KUBESCAFFOLD_BOILERPLATE_FILE"]

        overwrite = _env_flag("KUBESCAFFOLD_OVERWRITE")
        if overwrite is not None:
            kwargs["overwrite"] = overwrite
        quiet = _env_flag("KUBESCAFFOLD_QUIET")
        if quiet is not None:
            kwargs["quiet"] = quiet

        return cls(**kwargs)
