"""Shared fixtures for Roadmap Skill tests."""

from datetime import datetime, timedelta, timezone

import pytest

from roadmap_skill.models import CreateProjectInput, CreateTagData, CreateTaskData
from roadmap_skill.workspace import Workspace


class FakeClock:
    """Deterministic clock that advances one second per call."""

    def __init__(self, start=datetime(2025, 1, 1, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self):
        self.current += timedelta(seconds=1)
        return self.current.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def workspace(tmp_path, clock):
    return Workspace(tmp_path / "projects", templates_dir=tmp_path / "templates", clock=clock)


@pytest.fixture
def project(workspace):
    """A freshly created roadmap project document."""
    return workspace.repository.create(CreateProjectInput(
        name="Launch",
        description="Ship v1",
        project_type="roadmap",
        start_date="2025-01-01",
        target_date="2025-06-30",
    ))


@pytest.fixture
def make_tag(workspace, project):
    def _make(name, color=None):
        result = workspace.tags.create(project.project.id, CreateTagData(name=name, color=color))
        assert result.success, result.error
        return result.data
    return _make


@pytest.fixture
def make_task(workspace, project):
    def _make(title, **kwargs):
        result = workspace.tasks.create(project.project.id, CreateTaskData(title=title, **kwargs))
        assert result.success, result.error
        return result.data
    return _make
