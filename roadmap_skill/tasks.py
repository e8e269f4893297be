"""Task operations within a project document.

Every mutation reads the whole project document, changes it in memory and
writes the whole document back. Tag references are validated against the
owning project's tags before anything is changed, and ``completed_at`` is
kept consistent with ``status`` on every write path.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .models import (
    TAG_OPERATIONS,
    TASK_PRIORITIES,
    TASK_STATUSES,
    BatchUpdateTaskData,
    CreateTaskData,
    Task,
    TaskSearchFilters,
    generate_id,
    unique_ids,
    utc_now,
)
from .repository import Clock, ProjectRepository
from .results import ServiceResult, project_not_found, service_operation
from .roadmap_logging import log_operation, observability_hooks
from .search import TaskSearch

logger = logging.getLogger("roadmap_skill.tasks")

TASK_UPDATE_FIELDS = frozenset(
    {"title", "description", "status", "priority", "tags", "due_date", "assignee"}
)


def _task_not_found(project_id: str, task_id: str) -> ServiceResult:
    return ServiceResult.not_found(f"Task with ID '{task_id}' not found in project '{project_id}'")


def _invalid_tags(project_id: str, invalid_ids: List[str]) -> ServiceResult:
    return ServiceResult.invalid(
        f"Invalid tag IDs for project '{project_id}': {', '.join(invalid_ids)}"
    )


def _check_choice(field_name: str, value: Optional[str], allowed) -> Optional[ServiceResult]:
    if value is not None and value not in allowed:
        return ServiceResult.invalid(
            f"Invalid {field_name} '{value}'. Expected one of: {', '.join(allowed)}"
        )
    return None


class TaskService:
    """Create, read, update, delete, list and batch-update tasks."""

    def __init__(self, repository: ProjectRepository, search: TaskSearch, clock: Clock = utc_now):
        self.repository = repository
        self.search = search
        self.clock = clock

    @service_operation("create_task", "roadmap_skill.tasks")
    def create(self, project_id: str, data: CreateTaskData) -> ServiceResult[Task]:
        document = self.repository.read(project_id)
        if document is None:
            return project_not_found(project_id)

        invalid = _check_choice("priority", data.priority, TASK_PRIORITIES)
        if invalid:
            return invalid

        tag_ids = unique_ids(data.tags or [])
        invalid_ids = document.invalid_tag_ids(tag_ids)
        if invalid_ids:
            return _invalid_tags(project_id, invalid_ids)

        now = self.clock()
        task = Task(
            id=generate_id("task"),
            project_id=project_id,
            title=data.title,
            description=data.description,
            status="todo",
            priority=data.priority or "medium",
            tags=tag_ids,
            due_date=data.due_date,
            assignee=data.assignee,
            created_at=now,
            updated_at=now,
            completed_at=None,
        )
        document.tasks.append(task)
        document.touch(now)

        with log_operation("create_task", project_id=project_id, task_id=task.id):
            self.repository.save(document)

        logger.info(f"Created task {task.id} in project {project_id}")
        observability_hooks.log_event("task_created", project_id=project_id, task_id=task.id)
        return ServiceResult.ok(task)

    @service_operation("get_task", "roadmap_skill.tasks")
    def get(self, project_id: str, task_id: str) -> ServiceResult[Task]:
        document = self.repository.read(project_id)
        if document is None:
            return project_not_found(project_id)

        task = document.find_task(task_id)
        if task is None:
            return _task_not_found(project_id, task_id)
        return ServiceResult.ok(task)

    @service_operation("update_task", "roadmap_skill.tasks")
    def update(self, project_id: str, task_id: str, fields: Dict[str, Any]) -> ServiceResult[Task]:
        document = self.repository.read(project_id)
        if document is None:
            return project_not_found(project_id)

        task = document.find_task(task_id)
        if task is None:
            return _task_not_found(project_id, task_id)

        if not fields:
            return ServiceResult.invalid("At least one field to update is required")

        unknown = set(fields) - TASK_UPDATE_FIELDS
        if unknown:
            return ServiceResult.invalid(f"Unknown task fields: {', '.join(sorted(unknown))}")

        for field_name, allowed in (("status", TASK_STATUSES), ("priority", TASK_PRIORITIES)):
            invalid = _check_choice(field_name, fields.get(field_name), allowed)
            if invalid:
                return invalid

        if fields.get("tags") is not None:
            invalid_ids = document.invalid_tag_ids(fields["tags"])
            if invalid_ids:
                return _invalid_tags(project_id, invalid_ids)

        now = self.clock()
        task.apply_status(fields.get("status"), now)
        for field_name in ("title", "description", "priority", "due_date", "assignee"):
            if field_name in fields:
                setattr(task, field_name, fields[field_name])
        if fields.get("tags") is not None:
            task.tags = unique_ids(fields["tags"])
        task.updated_at = now
        document.touch(now)

        with log_operation("update_task", project_id=project_id, task_id=task_id, fields=sorted(fields)):
            self.repository.save(document)

        logger.info(f"Updated task {task_id} in project {project_id}")
        observability_hooks.log_event(
            "task_updated", project_id=project_id, task_id=task_id, fields=sorted(fields)
        )
        return ServiceResult.ok(task)

    @service_operation("delete_task", "roadmap_skill.tasks")
    def delete(self, project_id: str, task_id: str) -> ServiceResult[None]:
        document = self.repository.read(project_id)
        if document is None:
            return project_not_found(project_id)

        task = document.find_task(task_id)
        if task is None:
            return _task_not_found(project_id, task_id)

        document.tasks.remove(task)
        document.touch(self.clock())

        with log_operation("delete_task", project_id=project_id, task_id=task_id):
            self.repository.save(document)

        logger.info(f"Deleted task {task_id} from project {project_id}")
        observability_hooks.log_event("task_deleted", project_id=project_id, task_id=task_id)
        return ServiceResult.ok(None)

    @service_operation("list_tasks", "roadmap_skill.tasks")
    def list(self, filters: Optional[TaskSearchFilters] = None) -> ServiceResult[List[Task]]:
        """Bare task list backed by cross-project search."""
        results = self.search.search_tasks(filters or TaskSearchFilters())
        return ServiceResult.ok([result["task"] for result in results])

    @service_operation("batch_update_tasks", "roadmap_skill.tasks")
    def batch_update(
        self,
        project_id: str,
        task_ids: List[str],
        data: BatchUpdateTaskData,
    ) -> ServiceResult[Dict[str, Any]]:
        document = self.repository.read(project_id)
        if document is None:
            return project_not_found(project_id)

        for field_name, value, allowed in (
            ("status", data.status, TASK_STATUSES),
            ("priority", data.priority, TASK_PRIORITIES),
            ("tag operation", data.tag_operation, TAG_OPERATIONS),
        ):
            invalid = _check_choice(field_name, value, allowed)
            if invalid:
                return invalid

        # All supplied tag IDs are checked before any task is touched.
        if data.tags is not None:
            invalid_ids = document.invalid_tag_ids(data.tags)
            if invalid_ids:
                return _invalid_tags(project_id, invalid_ids)

        now = self.clock()
        updated_tasks: List[Task] = []
        not_found_ids: List[str] = []

        for task_id in unique_ids(task_ids):
            task = document.find_task(task_id)
            if task is None:
                not_found_ids.append(task_id)
                continue

            task.apply_status(data.status, now)
            if data.priority:
                task.priority = data.priority
            if data.tags is not None:
                task.tags = self._reconcile_tags(task.tags, data.tags, data.tag_operation)
            task.updated_at = now
            updated_tasks.append(task)

        if not updated_tasks:
            return ServiceResult.not_found("No tasks were found to update")

        document.touch(now)
        with log_operation("batch_update_tasks", project_id=project_id, updated_count=len(updated_tasks)):
            self.repository.save(document)

        logger.info(
            f"Batch updated {len(updated_tasks)} tasks in project {project_id}"
            + (f" ({len(not_found_ids)} not found)" if not_found_ids else "")
        )
        observability_hooks.log_event(
            "tasks_batch_updated",
            project_id=project_id,
            task_ids=[task.id for task in updated_tasks],
            not_found_ids=not_found_ids,
        )

        result: Dict[str, Any] = {
            "updatedTasks": updated_tasks,
            "updatedCount": len(updated_tasks),
        }
        if not_found_ids:
            result["notFoundIds"] = not_found_ids
        return ServiceResult.ok(result)

    @staticmethod
    def _reconcile_tags(existing: List[str], incoming: List[str], operation: str) -> List[str]:
        if operation == "add":
            return unique_ids([*existing, *incoming])
        if operation == "remove":
            removed = set(incoming)
            return [tag_id for tag_id in unique_ids(existing) if tag_id not in removed]
        return unique_ids(incoming)
