"""Unit tests for project templates."""

import json

import pytest

from roadmap_skill import config
from roadmap_skill.results import ErrorCode
from roadmap_skill.tags import default_tag_color
from roadmap_skill.templates import TemplateService


@pytest.fixture
def templates(workspace):
    """Template service with a small template written to the workspace templates dir."""
    workspace.templates_dir.mkdir(parents=True, exist_ok=True)
    (workspace.templates_dir / "starter.json").write_text(json.dumps({
        "name": "Starter",
        "description": "Starter template",
        "projectType": "kanban",
        "tags": [
            {"name": "Bug", "color": "#FF0000"},
            {"name": "idea"},
            {"name": "bug", "color": "#00FF00"},
        ],
        "tasks": [
            {"title": "First", "priority": "high", "tags": ["bug", "IDEA", "unknown"]},
            {"title": "Second", "priority": "urgent"},
        ],
    }), encoding="utf-8")
    (workspace.templates_dir / "broken.json").write_text("{", encoding="utf-8")
    (workspace.templates_dir / "bad-type.json").write_text(
        json.dumps({"name": "Bad", "projectType": "gantt"}), encoding="utf-8"
    )
    return workspace.templates


class TestTemplateCatalog:
    """Test cases for listing and reading templates."""

    def test_list_skips_unreadable(self, templates):
        names = [item["name"] for item in templates.list_templates().data]
        assert names == ["bad-type", "starter"]

    def test_get_template(self, templates):
        result = templates.get_template("starter")

        assert result.data["projectType"] == "kanban"
        assert [task["title"] for task in result.data["tasks"]] == ["First", "Second"]

    def test_get_missing_template(self, templates):
        assert templates.get_template("nope").code == ErrorCode.NOT_FOUND

    def test_path_traversal_is_refused(self, templates):
        assert templates.load_template("../starter") is None

    def test_bundled_templates_are_valid(self, workspace):
        service = TemplateService(config.BUNDLED_TEMPLATES_DIR, workspace.repository)
        names = {item["name"] for item in service.list_templates().data}
        assert {"web-app", "skill-tree", "kanban-board"} <= names


class TestApplyTemplate:
    """Test cases for TemplateService.apply_template."""

    def test_apply_creates_project_tags_and_tasks(self, workspace, templates):
        result = templates.apply_template("starter", "My board", start_date="2025-01-01", target_date="2025-02-01")

        assert result.success
        assert result.data["taskCount"] == 2
        assert result.data["tagCount"] == 2

        document = workspace.repository.read(result.data["project"].id)
        assert document.project.project_type == "kanban"
        assert document.project.name == "My board"
        bug, idea = document.tags
        assert bug.color == "#FF0000"
        assert idea.color == default_tag_color("idea")

        first, second = document.tasks
        assert first.tags == [bug.id, idea.id]
        assert first.priority == "high"
        assert second.priority == "medium"
        assert all(task.status == "todo" for task in document.tasks)

    def test_apply_missing_template(self, workspace, templates):
        assert templates.apply_template("nope", "x").code == ErrorCode.NOT_FOUND
        assert workspace.repository.list() == []

    def test_apply_invalid_project_type(self, workspace, templates):
        assert templates.apply_template("bad-type", "x").code == ErrorCode.VALIDATION_ERROR
        assert workspace.repository.list() == []
