"""Read-only JSON views of stored projects, served as MCP resources."""

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from .models import TASK_PRIORITIES, ProjectDocument
from .repository import ProjectRepository


def project_list_view(repository: ProjectRepository) -> Dict[str, Any]:
    projects = repository.list()
    return {
        "projects": [
            {
                "id": item["project"].id,
                "name": item["project"].name,
                "description": item["project"].description,
                "status": item["project"].status,
                "projectType": item["project"].project_type,
                "taskCount": item["taskCount"],
                "milestoneCount": item["milestoneCount"],
                "updatedAt": item["project"].updated_at,
            }
            for item in projects
        ],
        "totalCount": len(projects),
    }


def project_details_view(document: ProjectDocument) -> Dict[str, Any]:
    data = document.to_dict()
    tasks = document.tasks
    return {
        "project": data["project"],
        "milestones": data["milestones"],
        "tasks": data["tasks"],
        "tags": data["tags"],
        "stats": {
            "taskCount": len(tasks),
            "milestoneCount": len(document.milestones),
            "tagCount": len(document.tags),
            "completedTasks": sum(1 for task in tasks if task.status == "done"),
            "inProgressTasks": sum(1 for task in tasks if task.status == "in-progress"),
        },
    }


def project_tasks_view(document: ProjectDocument) -> Dict[str, Any]:
    by_status: Dict[str, list] = {"todo": [], "inProgress": [], "review": [], "done": []}
    status_keys = {"todo": "todo", "in-progress": "inProgress", "review": "review", "done": "done"}
    for task in document.tasks:
        key = status_keys.get(task.status)
        if key:
            by_status[key].append(task.to_dict())

    return {
        "projectId": document.project.id,
        "projectName": document.project.name,
        "tasks": [task.to_dict() for task in document.tasks],
        "tasksByStatus": by_status,
        "summary": {
            "total": len(document.tasks),
            **{key: len(items) for key, items in by_status.items()},
        },
    }


def days_remaining(target_date: str, today: Optional[date] = None) -> Optional[int]:
    """Whole days until ``target_date`` (rounded up), or None when not in the future."""
    try:
        target = datetime.fromisoformat(target_date)
    except (TypeError, ValueError):
        return None
    if target.tzinfo is None:
        target = target.replace(tzinfo=timezone.utc)
    if today is None:
        now = datetime.now(timezone.utc)
    else:
        now = datetime(today.year, today.month, today.day, tzinfo=timezone.utc)
    remaining = math.ceil((target - now).total_seconds() / 86400)
    return remaining if remaining > 0 else None


def project_progress_view(document: ProjectDocument, today: Optional[date] = None) -> Dict[str, Any]:
    tasks = document.tasks
    total = len(tasks)
    counts = {status: sum(1 for task in tasks if task.status == status)
              for status in ("todo", "in-progress", "review", "done")}
    completion = round(counts["done"] / total * 100) if total else 0

    milestones = document.milestones
    completed_milestones = sum(1 for milestone in milestones if milestone.completed_at is not None)
    milestone_percentage = round(completed_milestones / len(milestones) * 100) if milestones else 0

    today_iso = (today or date.today()).isoformat()
    overdue = [
        task for task in tasks
        if task.due_date and task.due_date < today_iso and task.status != "done"
    ]

    return {
        "projectId": document.project.id,
        "projectName": document.project.name,
        "projectStatus": document.project.status,
        "dates": {
            "startDate": document.project.start_date,
            "targetDate": document.project.target_date,
            "daysRemaining": days_remaining(document.project.target_date, today),
        },
        "taskProgress": {
            "total": total,
            "completed": counts["done"],
            "inProgress": counts["in-progress"],
            "review": counts["review"],
            "todo": counts["todo"],
            "completionPercentage": completion,
        },
        "milestoneProgress": {
            "total": len(milestones),
            "completed": completed_milestones,
            "percentage": milestone_percentage,
        },
        "overdueTasks": {
            "count": len(overdue),
            "tasks": [
                {"id": task.id, "title": task.title, "dueDate": task.due_date, "status": task.status}
                for task in overdue
            ],
        },
        "priorityBreakdown": {
            priority: sum(1 for task in tasks if task.priority == priority)
            for priority in reversed(TASK_PRIORITIES)
        },
        "lastUpdated": document.project.updated_at,
    }
