"""Exception hierarchy for the scaffolding engine.

Every failure the engine surfaces is a ``ScaffoldError``.  The concrete
subclass tells the caller *what kind* of failure happened (bad project
configuration, a template that did not render, a plugin rejection, a merge
into an existing file that could not be applied, or a storage failure); the
optional ``stage`` tells it *which phase* of a scaffold run produced it.
"""

from __future__ import annotations

from pathlib import Path


class ScaffoldError(Exception):
    """Base class for all scaffolding errors.

    Attributes:
        message: The undecorated error detail.
        stage: Scaffold phase that failed (e.g. ``"scaffolding controller"``),
            or ``None`` when the error has not been tagged yet.
        path: The project-relative file involved, when there is one.
    """

    def __init__(
        self,
        message: str,
        *,
        stage: str | None = None,
        path: str | Path | None = None,
    ) -> None:
        self.message = message
        self.stage = stage
        self.path = Path(path) if path is not None else None
        super().__init__(f"error {stage}: {message}" if stage else message)

    def at_stage(self, stage: str) -> "ScaffoldError":
        """Return a copy of this error, of the same kind, tagged with *stage*.

        An error that already carries a stage keeps its full message as the
        new detail so nested tags read outermost-first.
        """
        detail = str(self) if self.stage else self.message
        return type(self)(detail, stage=stage, path=self.path)


class ConfigurationError(ScaffoldError):
    """Unknown project version, malformed ``PROJECT`` file or resource."""


class RenderError(ScaffoldError):
    """A template failed to render against its universe."""


class PluginError(ScaffoldError):
    """A plugin rejected or failed on a rendered file."""


class MergeError(ScaffoldError):
    """An update-only merge could not be applied.

    Raised when the target file does not exist or when its marker is missing
    or duplicated.  The target file is left untouched.
    """


class PersistenceError(ScaffoldError):
    """Writing a generated file or the project file failed."""


class FileExistsScaffoldError(PersistenceError):
    """A fresh scaffold would clobber a file that already exists."""
