"""Tag operations within a project document."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

from .models import CreateTagData, Tag, generate_id, utc_now
from .repository import Clock, ProjectRepository
from .results import ServiceResult, project_not_found, service_operation
from .roadmap_logging import log_operation, observability_hooks

logger = logging.getLogger("roadmap_skill.tags")

HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")

TAG_COLOR_PALETTE = (
    "#FF6B6B",
    "#FF9F43",
    "#FDCB6E",
    "#6C5CE7",
    "#74B9FF",
    "#00B894",
    "#00CEC9",
    "#E17055",
    "#FAB1A0",
    "#55A3FF",
    "#A29BFE",
    "#FD79A8",
)

TAG_UPDATE_FIELDS = frozenset({"name", "color", "description"})


def hash_tag_name(value: str) -> int:
    """djb2-xor over the lower-cased name, kept to an unsigned 32-bit value."""
    hash_value = 5381
    for char in value.lower():
        hash_value = ((hash_value * 33) ^ ord(char)) & 0xFFFFFFFF
    return hash_value


def default_tag_color(tag_name: str) -> str:
    """Palette color derived from the tag name; equal names give equal colors."""
    normalized = tag_name.strip()
    if not normalized:
        return TAG_COLOR_PALETTE[0]
    return TAG_COLOR_PALETTE[hash_tag_name(normalized) % len(TAG_COLOR_PALETTE)]


def is_hex_color(value: str) -> bool:
    return bool(HEX_COLOR_PATTERN.match(value))


def _tag_not_found(project_id: str, tag_id: str) -> ServiceResult:
    return ServiceResult.not_found(f"Tag with ID '{tag_id}' not found in project '{project_id}'")


def _duplicate_name(name: str) -> ServiceResult:
    return ServiceResult.duplicate(f"Tag with name '{name}' already exists in this project")


def _bad_color(color: str) -> ServiceResult:
    return ServiceResult.invalid(
        f"Color must be a valid hex code (e.g., #FF5733), received '{color}'"
    )


class TagService:
    """Create, list, update and delete tags, and look up tasks by tag name."""

    def __init__(self, repository: ProjectRepository, clock: Clock = utc_now):
        self.repository = repository
        self.clock = clock

    @service_operation("create_tag", "roadmap_skill.tags")
    def create(self, project_id: str, data: CreateTagData) -> ServiceResult[Tag]:
        document = self.repository.read(project_id)
        if document is None:
            return project_not_found(project_id)

        if not data.name or not data.name.strip():
            return ServiceResult.invalid("Tag name cannot be empty")

        if document.find_tag_by_name(data.name):
            return _duplicate_name(data.name)

        color = data.color if data.color else default_tag_color(data.name)
        if not is_hex_color(color):
            return _bad_color(color)

        now = self.clock()
        tag = Tag(
            id=generate_id("tag"),
            name=data.name,
            color=color,
            description=data.description or "",
            created_at=now,
        )
        document.tags.append(tag)
        document.touch(now)

        with log_operation("create_tag", project_id=project_id, tag_id=tag.id):
            self.repository.save(document)

        logger.info(f"Created tag '{tag.name}' ({tag.id}) in project {project_id}")
        observability_hooks.log_event("tag_created", project_id=project_id, tag_id=tag.id, name=tag.name)
        return ServiceResult.ok(tag)

    @service_operation("list_tags", "roadmap_skill.tags")
    def list(self, project_id: str) -> ServiceResult[List[Dict[str, Any]]]:
        """Tags with the number of tasks referencing each one."""
        document = self.repository.read(project_id)
        if document is None:
            return project_not_found(project_id)

        task_counts: Dict[str, int] = {}
        for task in document.tasks:
            for tag_id in set(task.tags):
                task_counts[tag_id] = task_counts.get(tag_id, 0) + 1

        return ServiceResult.ok([
            {**tag.to_dict(), "taskCount": task_counts.get(tag.id, 0)}
            for tag in document.tags
        ])

    @service_operation("update_tag", "roadmap_skill.tags")
    def update(self, project_id: str, tag_id: str, fields: Dict[str, Any]) -> ServiceResult[Tag]:
        document = self.repository.read(project_id)
        if document is None:
            return project_not_found(project_id)

        tag = document.find_tag(tag_id)
        if tag is None:
            return _tag_not_found(project_id, tag_id)

        if not fields:
            return ServiceResult.invalid("At least one field to update is required")

        unknown = set(fields) - TAG_UPDATE_FIELDS
        if unknown:
            return ServiceResult.invalid(f"Unknown tag fields: {', '.join(sorted(unknown))}")

        new_name: Optional[str] = fields.get("name")
        if new_name is not None and not new_name.strip():
            return ServiceResult.invalid("Tag name cannot be empty")
        if new_name:
            clash = document.find_tag_by_name(new_name)
            if clash is not None and clash.id != tag_id:
                return _duplicate_name(new_name)

        new_color: Optional[str] = fields.get("color")
        if new_color is not None and not is_hex_color(new_color):
            return _bad_color(new_color)

        for field_name in TAG_UPDATE_FIELDS:
            if fields.get(field_name) is not None:
                setattr(tag, field_name, fields[field_name])
        document.touch(self.clock())

        with log_operation("update_tag", project_id=project_id, tag_id=tag_id, fields=sorted(fields)):
            self.repository.save(document)

        logger.info(f"Updated tag {tag_id} in project {project_id}")
        observability_hooks.log_event("tag_updated", project_id=project_id, tag_id=tag_id, fields=sorted(fields))
        return ServiceResult.ok(tag)

    @service_operation("delete_tag", "roadmap_skill.tags")
    def delete(self, project_id: str, tag_id: str) -> ServiceResult[Dict[str, Any]]:
        """Remove a tag and strip its ID from every task of the same project."""
        document = self.repository.read(project_id)
        if document is None:
            return project_not_found(project_id)

        tag = document.find_tag(tag_id)
        if tag is None:
            return _tag_not_found(project_id, tag_id)

        now = self.clock()
        tasks_updated = 0
        for task in document.tasks:
            if task.has_tag(tag_id):
                task.tags = [existing for existing in task.tags if existing != tag_id]
                task.updated_at = now
                tasks_updated += 1

        document.tags.remove(tag)
        document.touch(now)

        with log_operation("delete_tag", project_id=project_id, tag_id=tag_id, tasks_updated=tasks_updated):
            self.repository.save(document)

        logger.info(f"Deleted tag {tag_id} from project {project_id}; {tasks_updated} tasks updated")
        observability_hooks.log_event(
            "tag_deleted", project_id=project_id, tag_id=tag_id, tasks_updated=tasks_updated
        )
        return ServiceResult.ok({"deleted": True, "tag": tag, "tasksUpdated": tasks_updated})

    @service_operation("get_tasks_by_tag", "roadmap_skill.tags")
    def get_tasks_by_tag(self, project_id: str, tag_name: str) -> ServiceResult[Dict[str, Any]]:
        document = self.repository.read(project_id)
        if document is None:
            return project_not_found(project_id)

        tag = document.find_tag_by_name(tag_name)
        if tag is None:
            return ServiceResult.not_found(
                f"Tag with name '{tag_name}' not found in project '{project_id}'"
            )

        tasks = [task for task in document.tasks if task.has_tag(tag.id)]
        return ServiceResult.ok({"tag": tag, "tasks": tasks, "count": len(tasks)})
