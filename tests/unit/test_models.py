"""Unit tests for Roadmap Skill data models.

This module tests serialization of project documents, ID and timestamp
generation, the completion timestamp rule and task filter matching.
"""

import re

import pytest

from roadmap_skill.models import (
    Milestone,
    Project,
    ProjectDocument,
    Tag,
    Task,
    TaskSearchFilters,
    generate_id,
    unique_ids,
    utc_now,
)


def _task(**overrides):
    values = dict(
        id="task_1",
        project_id="proj_1",
        title="Write docs",
        description="User guide",
        created_at="2025-01-01T00:00:00.000Z",
        updated_at="2025-01-01T00:00:00.000Z",
    )
    values.update(overrides)
    return Task(**values)


class TestIdentifiers:
    """Test cases for ID and timestamp helpers."""

    def test_generate_id_format(self):
        """IDs carry the prefix, epoch millis and a base36 suffix."""
        value = generate_id("task")
        assert re.fullmatch(r"task_\d{13}_[0-9a-z]{7}", value)

    def test_generate_id_is_unique(self):
        """Consecutive IDs never collide."""
        ids = {generate_id("proj") for _ in range(200)}
        assert len(ids) == 200

    def test_utc_now_format(self):
        """Timestamps are ISO-8601 with milliseconds and a Z suffix."""
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", utc_now())

    def test_unique_ids_keeps_first_seen_order(self):
        """Duplicates are dropped without reordering."""
        assert unique_ids(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]


class TestTaskStatus:
    """Test cases for the completion timestamp rule."""

    def test_entering_done_sets_completed_at(self):
        task = _task()
        task.apply_status("done", "2025-02-01T00:00:00.000Z")
        assert task.status == "done"
        assert task.completed_at == "2025-02-01T00:00:00.000Z"

    def test_leaving_done_clears_completed_at(self):
        task = _task(status="done", completed_at="2025-02-01T00:00:00.000Z")
        task.apply_status("review", "2025-02-02T00:00:00.000Z")
        assert task.status == "review"
        assert task.completed_at is None

    def test_done_to_done_keeps_original_timestamp(self):
        task = _task(status="done", completed_at="2025-02-01T00:00:00.000Z")
        task.apply_status("done", "2025-03-01T00:00:00.000Z")
        assert task.completed_at == "2025-02-01T00:00:00.000Z"

    def test_non_done_transition_leaves_timestamp_alone(self):
        task = _task(status="todo")
        task.apply_status("in-progress", "2025-02-01T00:00:00.000Z")
        assert task.completed_at is None

    def test_no_status_is_noop(self):
        task = _task(status="review")
        task.apply_status(None, "2025-02-01T00:00:00.000Z")
        assert task.status == "review"


class TestSerialization:
    """Test cases for camelCase document serialization."""

    def test_task_to_dict_uses_camel_case(self):
        data = _task(tags=["tag_a", "tag_a", "tag_b"], due_date="2025-03-01").to_dict()
        assert data["projectId"] == "proj_1"
        assert data["dueDate"] == "2025-03-01"
        assert data["completedAt"] is None
        assert data["tags"] == ["tag_a", "tag_b"]

    def test_document_round_trip(self):
        """A document survives to_dict/from_dict unchanged."""
        document = ProjectDocument(
            project=Project(
                id="proj_1",
                name="Launch",
                description="",
                project_type="kanban",
                status="active",
                start_date="2025-01-01",
                target_date="2025-02-01",
                created_at="2025-01-01T00:00:00.000Z",
                updated_at="2025-01-01T00:00:00.000Z",
            ),
            milestones=[Milestone(
                id="ms_1",
                project_id="proj_1",
                title="Beta",
                description="",
                target_date="2025-01-15",
                created_at="2025-01-01T00:00:00.000Z",
                updated_at="2025-01-01T00:00:00.000Z",
            )],
            tasks=[_task(tags=["tag_1"])],
            tags=[Tag(id="tag_1", name="Bug", color="#FF6B6B", created_at="2025-01-01T00:00:00.000Z")],
        )

        data = document.to_dict()
        assert data["version"] == 1
        assert data["project"]["projectType"] == "kanban"
        assert ProjectDocument.from_dict(data) == document

    def test_from_dict_rejects_non_object(self):
        with pytest.raises(TypeError):
            ProjectDocument.from_dict(["not", "a", "document"])

    def test_from_dict_rejects_missing_project(self):
        with pytest.raises(KeyError):
            ProjectDocument.from_dict({"version": 1, "tasks": []})

    def test_find_tag_by_name_is_case_insensitive(self):
        document = ProjectDocument(
            project=Project("p", "n", "", "roadmap", "active", "d", "d", "t", "t"),
            tags=[Tag(id="tag_1", name="Frontend", color="#FF6B6B")],
        )
        assert document.find_tag_by_name("FRONTEND").id == "tag_1"
        assert document.invalid_tag_ids(["tag_1", "tag_x", "tag_x"]) == ["tag_x"]


class TestTaskSearchFilters:
    """Test cases for conjunctive filter matching."""

    def test_empty_filters_match_everything(self):
        assert TaskSearchFilters().matches(_task(status="done"))

    def test_exclude_completed(self):
        filters = TaskSearchFilters(include_completed=False)
        assert not filters.matches(_task(status="done"))
        assert filters.matches(_task(status="review"))

    def test_filters_are_conjunctive(self):
        filters = TaskSearchFilters(status="todo", priority="high")
        assert filters.matches(_task(status="todo", priority="high"))
        assert not filters.matches(_task(status="todo", priority="low"))

    def test_due_date_bounds_are_inclusive_and_pass_null(self):
        filters = TaskSearchFilters(due_before="2025-03-01", due_after="2025-02-01")
        assert filters.matches(_task(due_date="2025-03-01"))
        assert filters.matches(_task(due_date="2025-02-01"))
        assert not filters.matches(_task(due_date="2025-03-02"))
        assert not filters.matches(_task(due_date="2025-01-31"))
        assert filters.matches(_task(due_date=None))

    def test_tags_match_any(self):
        filters = TaskSearchFilters(tags=["tag_a", "tag_b"])
        assert filters.matches(_task(tags=["tag_b"]))
        assert not filters.matches(_task(tags=["tag_c"]))
        assert not filters.matches(_task(tags=[]))

    def test_search_text_checks_title_and_description(self):
        assert TaskSearchFilters(search_text="DOCS").matches(_task())
        assert TaskSearchFilters(search_text="guide").matches(_task())
        assert not TaskSearchFilters(search_text="deploy").matches(_task())

    def test_assignee_exact_match(self):
        filters = TaskSearchFilters(assignee="alice")
        assert filters.matches(_task(assignee="alice"))
        assert not filters.matches(_task(assignee=None))
