"""MCP server exposing Roadmap Skill project, task and tag tools."""

from __future__ import annotations

import json
import re
from datetime import date
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from roadmap_skill import config
from roadmap_skill.models import (
    PROJECT_STATUSES,
    PROJECT_TYPES,
    TAG_OPERATIONS,
    TASK_PRIORITIES,
    TASK_STATUSES,
    BatchUpdateTaskData,
    CreateProjectInput,
    CreateTagData,
    CreateTaskData,
    ProjectDocument,
    TaskSearchFilters,
)
from roadmap_skill.prompts import (
    auto_prioritize,
    enhance_task_details,
    quick_capture,
    recommend_next_tasks,
)
from roadmap_skill.resources import (
    project_details_view,
    project_list_view,
    project_progress_view,
    project_tasks_view,
)
from roadmap_skill.results import ErrorCode, ServiceResult, project_not_found
from roadmap_skill.roadmap_logging import log_error_with_context, setup_logging
from roadmap_skill.workspace import Workspace

mcp = FastMCP("roadmap-skill")

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _workspace() -> Workspace:
    return Workspace(config.get_storage_dir(), templates_dir=config.get_templates_dir())


def _invalid(message: str) -> Dict[str, Any]:
    return ServiceResult.invalid(message).to_dict()


def _check_date(name: str, value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not DATE_PATTERN.match(value):
        return f"{name} must be in YYYY-MM-DD format, received '{value}'"
    try:
        date.fromisoformat(value)
    except ValueError:
        return f"{name} is not a valid calendar date: '{value}'"
    return None


def _check_choice(name: str, value: Optional[str], allowed) -> Optional[str]:
    if value is not None and value not in allowed:
        return f"{name} must be one of: {', '.join(allowed)}; received '{value}'"
    return None


def _check_required(name: str, value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return f"{name} is required"
    return None


def _first_error(*errors: Optional[str]) -> Optional[str]:
    return next((error for error in errors if error), None)


def _internal_error(operation: str, error: Exception, **context) -> Dict[str, Any]:
    log_error_with_context(error, {"operation": operation, **context})
    return ServiceResult.fail(ErrorCode.INTERNAL_ERROR, str(error) or f"Failed to {operation}").to_dict()


def _project_summary(document: ProjectDocument) -> Dict[str, Any]:
    project = document.project
    return {
        "id": project.id,
        "name": project.name,
        "projectType": project.project_type,
        "status": project.status,
        "targetDate": project.target_date,
        "taskCount": len(document.tasks),
        "tags": [{"id": tag.id, "name": tag.name, "color": tag.color} for tag in document.tags],
    }


# ----------------------------------------------------------------------
# Project tools
# ----------------------------------------------------------------------


@mcp.tool()
def create_project(
    name: str,
    project_type: str,
    start_date: str,
    target_date: str,
    description: str = "",
) -> Dict[str, Any]:
    """Create a new project roadmap.

    project_type: 'roadmap', 'skill-tree' or 'kanban'. Dates use YYYY-MM-DD."""

    error = _first_error(
        _check_required("name", name),
        _check_choice("project_type", project_type, PROJECT_TYPES),
        _check_date("start_date", start_date),
        _check_date("target_date", target_date),
    )
    if error:
        return _invalid(error)

    try:
        document = _workspace().repository.create(CreateProjectInput(
            name=name,
            description=description,
            project_type=project_type,
            start_date=start_date,
            target_date=target_date,
        ))
    except Exception as e:
        return _internal_error("create project", e, name=name)
    return ServiceResult.ok(document).to_dict()


@mcp.tool()
def list_projects(verbose: bool = False) -> Dict[str, Any]:
    """List all projects, most recently updated first.

    Compact summaries include the project's tags; verbose=True returns full
    project records with task and milestone counts."""

    try:
        repository = _workspace().repository
        if verbose:
            return ServiceResult.ok(repository.list()).to_dict()
        documents = repository.list_documents_by_recency()
    except Exception as e:
        return _internal_error("list projects", e)
    return ServiceResult.ok([_project_summary(document) for document in documents]).to_dict()


@mcp.tool()
def get_project(project_id: str) -> Dict[str, Any]:
    """Get a project by ID with all its data (tasks, tags, milestones)."""

    try:
        document = _workspace().repository.read(project_id)
    except Exception as e:
        return _internal_error("get project", e, project_id=project_id)
    if document is None:
        return project_not_found(project_id).to_dict()
    return ServiceResult.ok(document).to_dict()


@mcp.tool()
def update_project(
    project_id: str,
    name: Optional[str] = None,
    description: Optional[str] = None,
    project_type: Optional[str] = None,
    status: Optional[str] = None,
    start_date: Optional[str] = None,
    target_date: Optional[str] = None,
) -> Dict[str, Any]:
    """Update an existing project. Only the supplied fields change.

    status: 'active', 'completed' or 'archived'."""

    fields = {
        key: value
        for key, value in {
            "name": name,
            "description": description,
            "project_type": project_type,
            "status": status,
            "start_date": start_date,
            "target_date": target_date,
        }.items()
        if value is not None
    }
    if not fields:
        return _invalid("At least one field to update is required")

    error = _first_error(
        _check_required("name", name) if name is not None else None,
        _check_choice("project_type", project_type, PROJECT_TYPES),
        _check_choice("status", status, PROJECT_STATUSES),
        _check_date("start_date", start_date),
        _check_date("target_date", target_date),
    )
    if error:
        return _invalid(error)

    try:
        document = _workspace().repository.update(project_id, fields)
    except Exception as e:
        return _internal_error("update project", e, project_id=project_id)
    if document is None:
        return project_not_found(project_id).to_dict()
    return ServiceResult.ok(document).to_dict()


@mcp.tool()
def delete_project(project_id: str) -> Dict[str, Any]:
    """Delete a project and everything in it."""

    try:
        deleted = _workspace().repository.delete(project_id)
    except Exception as e:
        return _internal_error("delete project", e, project_id=project_id)
    if not deleted:
        return project_not_found(project_id).to_dict()
    return ServiceResult.ok({"deleted": True}).to_dict()


# ----------------------------------------------------------------------
# Task tools
# ----------------------------------------------------------------------


@mcp.tool()
def create_task(
    project_id: str,
    title: str,
    description: str = "",
    priority: str = "medium",
    tags: Optional[List[str]] = None,
    due_date: Optional[str] = None,
    assignee: Optional[str] = None,
) -> Dict[str, Any]:
    """Create a new task in a project.

    priority: 'low', 'medium', 'high' or 'critical'. tags are tag IDs that
    must already exist in the project."""

    error = _first_error(
        _check_required("title", title),
        _check_choice("priority", priority, TASK_PRIORITIES),
        _check_date("due_date", due_date),
    )
    if error:
        return _invalid(error)

    result = _workspace().tasks.create(project_id, CreateTaskData(
        title=title,
        description=description,
        priority=priority,
        tags=tags or [],
        due_date=due_date,
        assignee=assignee,
    ))
    return result.to_dict()


@mcp.tool()
def list_tasks(
    project_id: Optional[str] = None,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    tags: Optional[List[str]] = None,
    assignee: Optional[str] = None,
    due_before: Optional[str] = None,
    due_after: Optional[str] = None,
    search_text: Optional[str] = None,
    include_completed: bool = False,
    verbose: bool = False,
) -> Dict[str, Any]:
    """List tasks across projects with optional filters.

    Completed (done) tasks are excluded unless include_completed=True or
    status='done'. Tag filters match tasks carrying any of the given tag IDs."""

    error = _first_error(
        _check_choice("status", status, TASK_STATUSES),
        _check_choice("priority", priority, TASK_PRIORITIES),
        _check_date("due_before", due_before),
        _check_date("due_after", due_after),
    )
    if error:
        return _invalid(error)

    filters = TaskSearchFilters(
        project_id=project_id,
        status=status,
        priority=priority,
        tags=tags,
        assignee=assignee,
        due_before=due_before,
        due_after=due_after,
        search_text=search_text,
        include_completed=include_completed or status == "done",
    )
    try:
        results = _workspace().search.search_tasks(filters)
    except Exception as e:
        return _internal_error("list tasks", e, filters=filters.to_dict())

    if verbose:
        return ServiceResult.ok(results).to_dict()
    return ServiceResult.ok([
        {
            "task": item["task"].to_summary(),
            "project": {"id": item["project"].id, "name": item["project"].name},
        }
        for item in results
    ]).to_dict()


@mcp.tool()
def get_task(project_id: str, task_id: str) -> Dict[str, Any]:
    """Get a specific task by project ID and task ID."""

    return _workspace().tasks.get(project_id, task_id).to_dict()


@mcp.tool()
def update_task(
    project_id: str,
    task_id: str,
    title: Optional[str] = None,
    description: Optional[str] = None,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    tags: Optional[List[str]] = None,
    due_date: Optional[str] = None,
    assignee: Optional[str] = None,
    clear_due_date: bool = False,
    clear_assignee: bool = False,
) -> Dict[str, Any]:
    """Update an existing task. Only the supplied fields change.

    status: 'todo', 'in-progress', 'review' or 'done'; moving to done records
    completedAt, moving away from done clears it. Use clear_due_date or
    clear_assignee to reset those fields to null."""

    fields: Dict[str, Any] = {
        key: value
        for key, value in {
            "title": title,
            "description": description,
            "status": status,
            "priority": priority,
            "tags": tags,
            "due_date": due_date,
            "assignee": assignee,
        }.items()
        if value is not None
    }
    if clear_due_date:
        fields["due_date"] = None
    if clear_assignee:
        fields["assignee"] = None

    error = _first_error(
        _check_required("title", title) if title is not None else None,
        _check_choice("status", status, TASK_STATUSES),
        _check_choice("priority", priority, TASK_PRIORITIES),
        _check_date("due_date", due_date),
    )
    if error:
        return _invalid(error)

    return _workspace().tasks.update(project_id, task_id, fields).to_dict()


@mcp.tool()
def delete_task(project_id: str, task_id: str) -> Dict[str, Any]:
    """Delete a task by project ID and task ID."""

    result = _workspace().tasks.delete(project_id, task_id)
    if result.success:
        return ServiceResult.ok({"deleted": True}).to_dict()
    return result.to_dict()


@mcp.tool()
def batch_update_tasks(
    project_id: str,
    task_ids: List[str],
    status: Optional[str] = None,
    priority: Optional[str] = None,
    tags: Optional[List[str]] = None,
    tag_operation: str = "replace",
) -> Dict[str, Any]:
    """Update status, priority or tags of several tasks at once.

    tag_operation: 'add' (union), 'remove' (difference) or 'replace' (default).
    Unknown task IDs are reported in notFoundIds without failing the batch."""

    if not task_ids:
        return _invalid("At least one task ID is required")

    error = _first_error(
        _check_choice("status", status, TASK_STATUSES),
        _check_choice("priority", priority, TASK_PRIORITIES),
        _check_choice("tag_operation", tag_operation, TAG_OPERATIONS),
    )
    if error:
        return _invalid(error)

    result = _workspace().tasks.batch_update(project_id, task_ids, BatchUpdateTaskData(
        status=status,
        priority=priority,
        tags=tags,
        tag_operation=tag_operation,
    ))
    return result.to_dict()


# ----------------------------------------------------------------------
# Tag tools
# ----------------------------------------------------------------------


@mcp.tool()
def create_tag(
    project_id: str,
    name: str,
    color: Optional[str] = None,
    description: str = "",
) -> Dict[str, Any]:
    """Create a new tag in a project.

    If color is omitted it is derived deterministically from the tag name.
    Colors are hex codes such as '#FF5733'."""

    error = _check_required("name", name)
    if error:
        return _invalid(error)

    result = _workspace().tags.create(project_id, CreateTagData(
        name=name,
        color=color,
        description=description,
    ))
    return result.to_dict()


@mcp.tool()
def list_tags(project_id: str) -> Dict[str, Any]:
    """List all tags in a project with the number of tasks using each."""

    return _workspace().tags.list(project_id).to_dict()


@mcp.tool()
def update_tag(
    project_id: str,
    tag_id: str,
    name: Optional[str] = None,
    color: Optional[str] = None,
    description: Optional[str] = None,
) -> Dict[str, Any]:
    """Update an existing tag's name, color or description."""

    fields = {
        key: value
        for key, value in {"name": name, "color": color, "description": description}.items()
        if value is not None
    }
    return _workspace().tags.update(project_id, tag_id, fields).to_dict()


@mcp.tool()
def delete_tag(project_id: str, tag_id: str) -> Dict[str, Any]:
    """Delete a tag and remove it from every task that uses it."""

    return _workspace().tags.delete(project_id, tag_id).to_dict()


@mcp.tool()
def get_tasks_by_tag(project_id: str, tag_name: str) -> Dict[str, Any]:
    """Get all tasks carrying the tag with the given name (case-insensitive)."""

    return _workspace().tags.get_tasks_by_tag(project_id, tag_name).to_dict()


# ----------------------------------------------------------------------
# Templates and backup
# ----------------------------------------------------------------------


@mcp.tool()
def list_templates() -> Dict[str, Any]:
    """List all available project templates."""

    return _workspace().templates.list_templates().to_dict()


@mcp.tool()
def get_template(template_name: str) -> Dict[str, Any]:
    """Get the tags and tasks defined by a project template."""

    return _workspace().templates.get_template(template_name).to_dict()


@mcp.tool()
def apply_template(
    template_name: str,
    project_name: str,
    description: str = "",
    start_date: Optional[str] = None,
    target_date: Optional[str] = None,
) -> Dict[str, Any]:
    """Create a new project, with tags and tasks, from a template.

    Dates default to today when omitted."""

    error = _first_error(
        _check_required("project_name", project_name),
        _check_date("start_date", start_date),
        _check_date("target_date", target_date),
    )
    if error:
        return _invalid(error)

    result = _workspace().templates.apply_template(
        template_name,
        project_name,
        description=description,
        start_date=start_date,
        target_date=target_date,
    )
    return result.to_dict()


@mcp.tool()
def export_data() -> Dict[str, Any]:
    """Export every project document as one backup payload."""

    return _workspace().backup.export_all().to_dict()


@mcp.tool()
def import_data(backup: Dict[str, Any], overwrite: bool = True) -> Dict[str, Any]:
    """Restore projects from a payload produced by export_data.

    Existing projects with the same ID are replaced unless overwrite=False."""

    return _workspace().backup.import_all(backup, overwrite=overwrite).to_dict()


# ----------------------------------------------------------------------
# Resources
# ----------------------------------------------------------------------


def _read_document(project_id: str) -> ProjectDocument:
    document = _workspace().repository.read(project_id)
    if document is None:
        raise ValueError(f"Resource not found: project '{project_id}'")
    return document


@mcp.resource("roadmap://projects", mime_type="application/json")
def resource_projects() -> str:
    """All projects with basic metadata."""

    return json.dumps(project_list_view(_workspace().repository), indent=2)


@mcp.resource("roadmap://project/{project_id}", mime_type="application/json")
def resource_project(project_id: str) -> str:
    """A project with its tasks, milestones, tags and counts."""

    return json.dumps(project_details_view(_read_document(project_id)), indent=2)


@mcp.resource("roadmap://project/{project_id}/tasks", mime_type="application/json")
def resource_project_tasks(project_id: str) -> str:
    """A project's tasks grouped by status."""

    return json.dumps(project_tasks_view(_read_document(project_id)), indent=2)


@mcp.resource("roadmap://project/{project_id}/progress", mime_type="application/json")
def resource_project_progress(project_id: str) -> str:
    """Completion, milestone, overdue and priority statistics for a project."""

    return json.dumps(project_progress_view(_read_document(project_id)), indent=2)


# ----------------------------------------------------------------------
# Prompts
# ----------------------------------------------------------------------


@mcp.prompt(name="recommendNextTasks")
def prompt_recommend_next_tasks(project_id: Optional[str] = None, limit: int = 3) -> str:
    """Recommend the next tasks to work on by urgency, due date and status."""

    return recommend_next_tasks(project_id, limit)


@mcp.prompt(name="autoPrioritize")
def prompt_auto_prioritize(project_id: Optional[str] = None) -> str:
    """Suggest priority changes based on due dates and blocking work."""

    return auto_prioritize(project_id)


@mcp.prompt(name="enhanceTaskDetails")
def prompt_enhance_task_details(task_id: str) -> str:
    """Expand a task with acceptance criteria, subtasks and resources."""

    return enhance_task_details(task_id)


@mcp.prompt(name="quickCapture")
def prompt_quick_capture(idea: str, project_id: Optional[str] = None) -> str:
    """Turn a rough idea into a categorized, prioritized task."""

    return quick_capture(idea, project_id)


def main() -> None:
    setup_logging(config.get_log_level(), config.get_log_file())
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
