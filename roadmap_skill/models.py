"""Data models for Roadmap Skill project management.

This module contains the core data structures persisted in each project
document: projects, tasks, tags and milestones, plus the filter and input
types used by the service layer.

Persisted field names are camelCase; ``to_dict``/``from_dict`` translate
between them and the snake_case attributes used in Python.
"""

from __future__ import annotations

import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

SCHEMA_VERSION = 1

PROJECT_TYPES = ("roadmap", "skill-tree", "kanban")
PROJECT_STATUSES = ("active", "completed", "archived")
TASK_STATUSES = ("todo", "in-progress", "review", "done")
TASK_PRIORITIES = ("low", "medium", "high", "critical")
TAG_OPERATIONS = ("add", "remove", "replace")

_ID_ALPHABET = string.digits + string.ascii_lowercase


def utc_now() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def generate_id(prefix: str) -> str:
    """Generate an ID of the form ``<prefix>_<epoch-millis>_<7 base36 chars>``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=7))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def unique_ids(values: Iterable[str]) -> List[str]:
    """Drop duplicate IDs while keeping first-seen order."""
    return list(dict.fromkeys(values))


@dataclass(slots=True)
class Project:
    """Top-level project metadata."""

    id: str
    name: str
    description: str
    project_type: str
    status: str
    start_date: str
    target_date: str
    created_at: str
    updated_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "projectType": self.project_type,
            "status": self.status,
            "startDate": self.start_date,
            "targetDate": self.target_date,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            project_type=data["projectType"],
            status=data.get("status", "active"),
            start_date=data["startDate"],
            target_date=data["targetDate"],
            created_at=data["createdAt"],
            updated_at=data["updatedAt"],
        )


@dataclass(slots=True)
class Task:
    """A unit of work owned by a project document."""

    id: str
    project_id: str
    title: str
    description: str = ""
    status: str = "todo"
    priority: str = "medium"
    tags: List[str] = field(default_factory=list)  # tag IDs, semantically a set
    due_date: Optional[str] = None
    assignee: Optional[str] = None
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)
    completed_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "tags": unique_ids(self.tags),
            "dueDate": self.due_date,
            "assignee": self.assignee,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "completedAt": self.completed_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        return cls(
            id=data["id"],
            project_id=data["projectId"],
            title=data["title"],
            description=data.get("description", ""),
            status=data.get("status", "todo"),
            priority=data.get("priority", "medium"),
            tags=list(data.get("tags") or []),
            due_date=data.get("dueDate"),
            assignee=data.get("assignee"),
            created_at=data["createdAt"],
            updated_at=data["updatedAt"],
            completed_at=data.get("completedAt"),
        )

    def has_tag(self, tag_id: str) -> bool:
        return tag_id in set(self.tags)

    def apply_status(self, new_status: Optional[str], now: str) -> None:
        """Change status and keep ``completed_at`` in step with it.

        Entering ``done`` stamps ``now``; leaving ``done`` clears the stamp;
        any other transition, or no status change at all, leaves it alone.
        """
        if new_status is None:
            return
        old_status = self.status
        self.status = new_status
        if new_status == "done" and old_status != "done":
            self.completed_at = now
        elif old_status == "done" and new_status != "done":
            self.completed_at = None

    def to_summary(self) -> Dict[str, Any]:
        """Compact view used by non-verbose tool responses."""
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status,
            "priority": self.priority,
            "dueDate": self.due_date,
            "assignee": self.assignee,
            "tags": unique_ids(self.tags),
        }


@dataclass(slots=True)
class Tag:
    """A project-scoped label; names are unique per project ignoring case."""

    id: str
    name: str
    color: str
    description: str = ""
    created_at: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "description": self.description,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tag":
        return cls(
            id=data["id"],
            name=data["name"],
            color=data["color"],
            description=data.get("description", ""),
            created_at=data["createdAt"],
        )

    def matches_name(self, name: str) -> bool:
        return self.name.lower() == name.lower()


@dataclass(slots=True)
class Milestone:
    """Stored and returned as-is; no operation mutates milestones."""

    id: str
    project_id: str
    title: str
    description: str
    target_date: str
    created_at: str
    updated_at: str
    completed_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "title": self.title,
            "description": self.description,
            "targetDate": self.target_date,
            "completedAt": self.completed_at,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Milestone":
        return cls(
            id=data["id"],
            project_id=data["projectId"],
            title=data["title"],
            description=data.get("description", ""),
            target_date=data["targetDate"],
            created_at=data["createdAt"],
            updated_at=data["updatedAt"],
            completed_at=data.get("completedAt"),
        )


@dataclass(slots=True)
class ProjectDocument:
    """The unit of storage: one project and everything nested in it."""

    project: Project
    milestones: List[Milestone] = field(default_factory=list)
    tasks: List[Task] = field(default_factory=list)
    tags: List[Tag] = field(default_factory=list)
    version: int = SCHEMA_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "project": self.project.to_dict(),
            "milestones": [milestone.to_dict() for milestone in self.milestones],
            "tasks": [task.to_dict() for task in self.tasks],
            "tags": [tag.to_dict() for tag in self.tags],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectDocument":
        """Parse a stored document; raises KeyError/TypeError/ValueError when malformed."""
        if not isinstance(data, dict):
            raise TypeError(f"Project document must be an object, got {type(data).__name__}")
        return cls(
            version=int(data.get("version", SCHEMA_VERSION)),
            project=Project.from_dict(data["project"]),
            milestones=[Milestone.from_dict(item) for item in data.get("milestones", [])],
            tasks=[Task.from_dict(item) for item in data.get("tasks", [])],
            tags=[Tag.from_dict(item) for item in data.get("tags", [])],
        )

    def touch(self, now: str) -> None:
        self.project.updated_at = now

    def find_task(self, task_id: str) -> Optional[Task]:
        return next((task for task in self.tasks if task.id == task_id), None)

    def find_tag(self, tag_id: str) -> Optional[Tag]:
        return next((tag for tag in self.tags if tag.id == tag_id), None)

    def find_tag_by_name(self, name: str) -> Optional[Tag]:
        return next((tag for tag in self.tags if tag.matches_name(name)), None)

    def tag_ids(self) -> set[str]:
        return {tag.id for tag in self.tags}

    def invalid_tag_ids(self, tag_ids: Iterable[str]) -> List[str]:
        """Tag IDs not defined in this project, in the order given."""
        known = self.tag_ids()
        return [tag_id for tag_id in unique_ids(tag_ids) if tag_id not in known]


@dataclass(slots=True)
class TaskSearchFilters:
    """Conjunctive task filters for cross-project search.

    ``include_completed`` defaults to True so the search primitive is neutral;
    callers that hide finished work pass False explicitly.
    """

    project_id: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    tags: Optional[List[str]] = None
    assignee: Optional[str] = None
    due_before: Optional[str] = None
    due_after: Optional[str] = None
    search_text: Optional[str] = None
    include_completed: bool = True

    def matches(self, task: Task) -> bool:
        if self.status and task.status != self.status:
            return False
        if self.priority and task.priority != self.priority:
            return False
        if self.assignee and task.assignee != self.assignee:
            return False
        if not self.include_completed and task.status == "done":
            return False
        if self.due_before and task.due_date and task.due_date > self.due_before:
            return False
        if self.due_after and task.due_date and task.due_date < self.due_after:
            return False
        if self.tags and set(self.tags).isdisjoint(task.tags):
            return False
        if self.search_text:
            needle = self.search_text.lower()
            if needle not in task.title.lower() and needle not in (task.description or "").lower():
                return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projectId": self.project_id,
            "status": self.status,
            "priority": self.priority,
            "tags": self.tags,
            "assignee": self.assignee,
            "dueBefore": self.due_before,
            "dueAfter": self.due_after,
            "searchText": self.search_text,
            "includeCompleted": self.include_completed,
        }


@dataclass(slots=True)
class CreateProjectInput:
    name: str
    description: str
    project_type: str
    start_date: str
    target_date: str


@dataclass(slots=True)
class CreateTaskData:
    title: str
    description: str = ""
    priority: str = "medium"
    tags: List[str] = field(default_factory=list)
    due_date: Optional[str] = None
    assignee: Optional[str] = None


@dataclass(slots=True)
class BatchUpdateTaskData:
    status: Optional[str] = None
    priority: Optional[str] = None
    tags: Optional[List[str]] = None
    tag_operation: str = "replace"


@dataclass(slots=True)
class CreateTagData:
    name: str
    color: Optional[str] = None
    description: str = ""
