"""
Integration tests for the MCP server tools.

These tests call the tool, resource and prompt functions registered in
main.py against a temporary storage directory and check the response
envelopes returned to MCP clients.
"""

import json

import pytest

import main
from roadmap_skill import config


@pytest.fixture(autouse=True)
def storage_dir(tmp_path, monkeypatch):
    """Point the server at a temporary storage directory."""
    directory = tmp_path / "projects"
    monkeypatch.setenv(config.STORAGE_DIR_ENV, str(directory))
    monkeypatch.delenv(config.TEMPLATES_DIR_ENV, raising=False)
    return directory


@pytest.fixture
def project_id():
    response = main.create_project(
        name="Website",
        project_type="roadmap",
        start_date="2026-01-01",
        target_date="2026-12-31",
        description="Company site",
    )
    assert response["success"], response
    return response["data"]["project"]["id"]


class TestProjectTools:
    """Integration tests for project tools."""

    def test_create_and_get_project(self, storage_dir, project_id):
        response = main.get_project(project_id)

        assert response["success"]
        assert response["data"]["project"]["name"] == "Website"
        assert response["data"]["project"]["status"] == "active"
        assert (storage_dir / f"{project_id}.json").exists()

    def test_create_project_validation(self):
        bad_type = main.create_project("X", "gantt", "2026-01-01", "2026-02-01")
        bad_date = main.create_project("X", "roadmap", "01/01/2026", "2026-02-01")
        blank = main.create_project("  ", "roadmap", "2026-01-01", "2026-02-01")

        for response in (bad_type, bad_date, blank):
            assert response["success"] is False
            assert response["code"] == "VALIDATION_ERROR"

    def test_list_projects_compact_and_verbose(self, project_id):
        main.create_tag(project_id, "frontend")

        compact = main.list_projects()["data"]
        assert compact[0]["id"] == project_id
        assert compact[0]["taskCount"] == 0
        assert [tag["name"] for tag in compact[0]["tags"]] == ["frontend"]

        verbose = main.list_projects(verbose=True)["data"]
        assert verbose[0]["project"]["id"] == project_id
        assert verbose[0]["milestoneCount"] == 0

    def test_update_project(self, project_id):
        response = main.update_project(project_id, status="completed")
        assert response["data"]["project"]["status"] == "completed"

        assert main.update_project(project_id)["code"] == "VALIDATION_ERROR"
        assert main.update_project(project_id, status="paused")["code"] == "VALIDATION_ERROR"
        assert main.update_project("proj_missing", name="x")["code"] == "NOT_FOUND"

    def test_delete_project(self, project_id):
        assert main.delete_project(project_id) == {"success": True, "data": {"deleted": True}}
        assert main.get_project(project_id)["code"] == "NOT_FOUND"
        assert main.delete_project(project_id)["code"] == "NOT_FOUND"

    def test_unusable_project_id_is_not_found(self):
        assert main.get_project("a/b")["code"] == "NOT_FOUND"
        assert main.delete_project(".hidden")["code"] == "NOT_FOUND"
        assert main.create_task("../escape", "x")["code"] == "NOT_FOUND"


class TestTaskTools:
    """Integration tests for task tools."""

    def test_task_lifecycle(self, project_id):
        tag = main.create_tag(project_id, "backend", color="#112233")["data"]
        created = main.create_task(project_id, "Build API", priority="high", tags=[tag["id"]], due_date="2026-03-01")
        task_id = created["data"]["id"]
        assert created["data"]["status"] == "todo"

        done = main.update_task(project_id, task_id, status="done")
        assert done["data"]["completedAt"] == done["data"]["updatedAt"]

        reopened = main.update_task(project_id, task_id, status="todo", clear_due_date=True)
        assert reopened["data"]["completedAt"] is None
        assert reopened["data"]["dueDate"] is None

        assert main.get_task(project_id, task_id)["data"]["title"] == "Build API"
        assert main.delete_task(project_id, task_id) == {"success": True, "data": {"deleted": True}}
        assert main.get_task(project_id, task_id)["code"] == "NOT_FOUND"

    def test_create_task_with_unknown_tags(self, project_id):
        response = main.create_task(project_id, "Build API", tags=["bad1", "bad2"])

        assert response["code"] == "VALIDATION_ERROR"
        assert "bad1" in response["error"] and "bad2" in response["error"]

    def test_list_tasks_hides_completed_by_default(self, project_id):
        open_id = main.create_task(project_id, "Open")["data"]["id"]
        done_id = main.create_task(project_id, "Finished")["data"]["id"]
        main.update_task(project_id, done_id, status="done")

        default = main.list_tasks(project_id=project_id)["data"]
        assert [item["task"]["id"] for item in default] == [open_id]
        assert default[0]["project"] == {"id": project_id, "name": "Website"}
        assert "createdAt" not in default[0]["task"]

        everything = main.list_tasks(project_id=project_id, include_completed=True)["data"]
        assert {item["task"]["id"] for item in everything} == {open_id, done_id}

        only_done = main.list_tasks(status="done")["data"]
        assert [item["task"]["id"] for item in only_done] == [done_id]

    def test_list_tasks_verbose(self, project_id):
        main.create_task(project_id, "Open")

        [item] = main.list_tasks(verbose=True)["data"]
        assert item["task"]["projectId"] == project_id
        assert item["project"]["projectType"] == "roadmap"

    def test_list_tasks_validation(self):
        assert main.list_tasks(priority="urgent")["code"] == "VALIDATION_ERROR"
        assert main.list_tasks(due_before="tomorrow")["code"] == "VALIDATION_ERROR"

    def test_batch_update_tasks(self, project_id):
        first = main.create_task(project_id, "One")["data"]["id"]
        second = main.create_task(project_id, "Two")["data"]["id"]

        response = main.batch_update_tasks(project_id, [first, second, "nonexistent"], status="review")

        assert response["success"]
        assert response["data"]["updatedCount"] == 2
        assert response["data"]["notFoundIds"] == ["nonexistent"]
        assert main.batch_update_tasks(project_id, [])["code"] == "VALIDATION_ERROR"
        assert main.batch_update_tasks(project_id, [first], tag_operation="merge")["code"] == "VALIDATION_ERROR"


class TestTagTools:
    """Integration tests for tag tools."""

    def test_tag_lifecycle(self, project_id):
        tag_id = main.create_tag(project_id, "Bug")["data"]["id"]
        assert main.create_tag(project_id, "bug")["code"] == "DUPLICATE_ERROR"

        task_id = main.create_task(project_id, "Crash", tags=[tag_id])["data"]["id"]
        [listed] = main.list_tags(project_id)["data"]
        assert listed["taskCount"] == 1

        by_name = main.get_tasks_by_tag(project_id, "BUG")["data"]
        assert [task["id"] for task in by_name["tasks"]] == [task_id]

        renamed = main.update_tag(project_id, tag_id, name="Defect")
        assert renamed["data"]["name"] == "Defect"

        deleted = main.delete_tag(project_id, tag_id)
        assert deleted["data"]["tasksUpdated"] == 1
        assert main.get_task(project_id, task_id)["data"]["tags"] == []

    def test_create_tag_rejects_bad_color(self, project_id):
        assert main.create_tag(project_id, "ui", color="blue")["code"] == "VALIDATION_ERROR"


class TestTemplateAndBackupTools:
    """Integration tests for templates and export/import."""

    def test_apply_bundled_template(self):
        names = [item["name"] for item in main.list_templates()["data"]]
        assert "kanban-board" in names

        applied = main.apply_template("kanban-board", "Ops board")
        assert applied["success"]
        project_id = applied["data"]["project"]["id"]

        document = main.get_project(project_id)["data"]
        assert document["project"]["projectType"] == "kanban"
        assert len(document["tasks"]) == applied["data"]["taskCount"]
        assert main.apply_template("missing", "x")["code"] == "NOT_FOUND"

    def test_export_then_import(self, project_id, tmp_path, monkeypatch):
        main.create_task(project_id, "Keep me")
        backup = main.export_data()["data"]
        assert backup["projectCount"] == 1

        monkeypatch.setenv(config.STORAGE_DIR_ENV, str(tmp_path / "restore"))
        result = main.import_data(backup)

        assert result["data"]["importedCount"] == 1
        titles = [task["title"] for task in main.get_project(project_id)["data"]["tasks"]]
        assert titles == ["Keep me"]


class TestResourcesAndPrompts:
    """Integration tests for MCP resources and prompts."""

    def test_project_resources(self, project_id):
        main.create_task(project_id, "One")

        listing = json.loads(main.resource_projects())
        assert listing["totalCount"] == 1

        details = json.loads(main.resource_project(project_id))
        assert details["stats"]["taskCount"] == 1

        tasks = json.loads(main.resource_project_tasks(project_id))
        assert tasks["summary"]["todo"] == 1

        progress = json.loads(main.resource_project_progress(project_id))
        assert progress["taskProgress"]["completionPercentage"] == 0

    def test_missing_project_resource(self):
        with pytest.raises(ValueError):
            main.resource_project("proj_missing")

    def test_prompts_mention_their_inputs(self):
        assert "proj_1" in main.prompt_recommend_next_tasks("proj_1", limit=5)
        assert "5 tasks" in main.prompt_recommend_next_tasks("proj_1", limit=5)
        assert "batch_update_tasks" in main.prompt_auto_prioritize()
        assert "task_1" in main.prompt_enhance_task_details("task_1")
        assert "Dark mode" in main.prompt_quick_capture("Dark mode", project_id="proj_1")
