"""Shared pytest fixtures for the kubescaffold test suite.

Provides reusable fixtures for:
- Temporary project directories
- V1 / V2 (single-group and multigroup) project configurations
- A persisted project store and a quiet console
- Sample resources
"""

from __future__ import annotations

from pathlib import Path

import pytest
from rich.console import Console

from kubescaffold.config import ProjectConfig, ProjectStore
from kubescaffold.model.resource import Resource


BOILERPLATE = """\
/*
Copyright 2026 The Example Authors.

Licensed under the Apache License, Version 2.0 (the "License");
*/"""


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Temporary directory for a scaffolded project (auto-cleanup)."""
    project_dir = tmp_path / "test-project"
    project_dir.mkdir()
    yield project_dir


@pytest.fixture
def quiet_console() -> Console:
    """A console that swallows all progress output."""
    return Console(quiet=True)


# ---------------------------------------------------------------------------
# Project configurations
# ---------------------------------------------------------------------------

@pytest.fixture
def v2_config() -> ProjectConfig:
    """Fresh single-group V2 project."""
    return ProjectConfig(
        version="2",
        domain="example.com",
        repo="github.com/example/guestbook",
        boilerplate=BOILERPLATE,
    )


@pytest.fixture
def v2_multigroup_config(v2_config: ProjectConfig) -> ProjectConfig:
    """Fresh multigroup V2 project."""
    return v2_config.model_copy(update={"multigroup": True})


@pytest.fixture
def v1_config() -> ProjectConfig:
    """Fresh V1 project."""
    return ProjectConfig(
        version="1",
        domain="example.com",
        repo="github.com/example/guestbook",
        boilerplate=BOILERPLATE,
    )


@pytest.fixture
def store(tmp_project_dir: Path) -> ProjectStore:
    """Project store rooted at the temporary project directory."""
    return ProjectStore(tmp_project_dir)


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------

@pytest.fixture
def frontend() -> Resource:
    """The ``apps/v1 Frontend`` resource used throughout the scenarios."""
    return Resource(group="apps", version="v1", kind="Frontend")


@pytest.fixture
def cronjob() -> Resource:
    """A second resource in a different group."""
    return Resource(group="batch", version="v1beta1", kind="CronJob")
