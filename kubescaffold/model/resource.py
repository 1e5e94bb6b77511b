"""Resource descriptor: the group/version/kind being scaffolded."""

from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, Field

from ..config import GroupVersionKind
from ..errors import ConfigurationError
from ..utils import pluralize

# DNS-1123 subdomain: lower-case alphanumerics, '-' and '.', alphanumeric at both ends.
_DNS1123_SUBDOMAIN = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$")
_VERSION = re.compile(r"^v\d+(alpha\d+|beta\d+)?$")
_KIND = re.compile(r"^[A-Z][A-Za-z0-9]*$")


class Resource(BaseModel):
    """An API resource to scaffold.

    Apart from ``create_example_reconcile_body``, which the API scaffolder
    may clear before rendering the controller, a resource is not modified
    once scaffolding starts.
    """

    group: str = Field(..., description="API group, e.g. 'apps'")
    version: str = Field(..., description="API version, e.g. 'v1'")
    kind: str = Field(..., description="CamelCase kind, e.g. 'Frontend'")
    plural: Optional[str] = Field(
        default=None, description="Lower-case plural; derived from the kind when omitted"
    )
    namespaced: bool = Field(default=True, description="Whether the resource is namespace-scoped")
    create_example_reconcile_body: bool = Field(
        default=True,
        description="Whether the controller template emits example reconcile logic",
    )

    def gvk(self) -> GroupVersionKind:
        return GroupVersionKind(group=self.group, version=self.version, kind=self.kind)

    @property
    def kind_lower(self) -> str:
        return self.kind.lower()

    @property
    def resource_plural(self) -> str:
        """The explicit plural, or one derived from the lower-cased kind."""
        return self.plural or pluralize(self.kind_lower)

    def validate_resource(self) -> None:
        """Check the group, version, kind, and plural.

        Raises:
            ConfigurationError: Describing the first invalid field.
        """
        if not self.group:
            raise ConfigurationError("group cannot be empty")
        if not _DNS1123_SUBDOMAIN.match(self.group):
            raise ConfigurationError(
                f"group name is invalid: ({self.group}) must be a lower-case DNS-1123 subdomain"
            )
        if not self.version:
            raise ConfigurationError("version cannot be empty")
        if not _VERSION.match(self.version):
            raise ConfigurationError(
                rf"version must match ^v\d+(alpha\d+|beta\d+)?$ (was {self.version})"
            )
        if not self.kind:
            raise ConfigurationError("kind cannot be empty")
        if not _KIND.match(self.kind):
            raise ConfigurationError(
                f"kind must be CamelCase (expected {self.kind[:1].upper() + self.kind[1:]} "
                f"was {self.kind})"
            )
        if self.plural is not None and self.plural != self.plural.lower():
            raise ConfigurationError(f"plural must be lower case (was {self.plural})")
