"""Data model shared by every template: resources and the universe."""

from kubescaffold.model.resource import Resource
from kubescaffold.model.universe import (
    ResourceView,
    Universe,
    build_project_universe,
    build_universe,
)

__all__ = [
    "Resource",
    "ResourceView",
    "Universe",
    "build_project_universe",
    "build_universe",
]
