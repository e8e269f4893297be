"""Project templates that seed a new project with tags and tasks."""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import (
    PROJECT_TYPES,
    TASK_PRIORITIES,
    CreateProjectInput,
    Tag,
    Task,
    generate_id,
    utc_now,
)
from .repository import Clock, ProjectRepository
from .results import ServiceResult, service_operation
from .roadmap_logging import log_operation, observability_hooks
from .tags import default_tag_color, is_hex_color

logger = logging.getLogger("roadmap_skill.templates")


class TemplateService:
    """Read JSON templates from a directory and apply them as new projects."""

    def __init__(self, templates_dir: Path | str, repository: ProjectRepository, clock: Clock = utc_now):
        self.templates_dir = Path(templates_dir)
        self.repository = repository
        self.clock = clock

    def _template_files(self) -> List[Path]:
        if not self.templates_dir.is_dir():
            return []
        return sorted(self.templates_dir.glob("*.json"))

    def load_template(self, template_name: str) -> Optional[Dict[str, Any]]:
        """Parsed template, or None when missing or unreadable."""
        file_name = template_name if template_name.endswith(".json") else f"{template_name}.json"
        path = self.templates_dir / file_name
        if path.parent != self.templates_dir:
            return None
        try:
            template = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Skipping unreadable template {path}: {e}")
            return None
        if not isinstance(template, dict):
            logger.warning(f"Skipping template {path}: expected a JSON object")
            return None
        template.setdefault("tasks", [])
        template.setdefault("tags", [])
        return template

    @service_operation("list_templates", "roadmap_skill.templates")
    def list_templates(self) -> ServiceResult[List[Dict[str, Any]]]:
        summaries = []
        for path in self._template_files():
            template = self.load_template(path.name)
            if template is None:
                continue
            summaries.append({
                "name": path.stem,
                "displayName": template.get("name", path.stem),
                "description": template.get("description", ""),
                "projectType": template.get("projectType"),
                "taskCount": len(template["tasks"]),
                "tagCount": len(template["tags"]),
            })
        return ServiceResult.ok(summaries)

    @service_operation("get_template", "roadmap_skill.templates")
    def get_template(self, template_name: str) -> ServiceResult[Dict[str, Any]]:
        template = self.load_template(template_name)
        if template is None:
            return ServiceResult.not_found(f"Template '{template_name}' not found")
        return ServiceResult.ok({
            "name": template.get("name", template_name),
            "description": template.get("description", ""),
            "projectType": template.get("projectType"),
            "tasks": [
                {
                    "title": task.get("title"),
                    "description": task.get("description", ""),
                    "priority": task.get("priority", "medium"),
                    "tags": task.get("tags", []),
                    "estimatedHours": task.get("estimatedHours"),
                }
                for task in template["tasks"]
            ],
            "tags": template["tags"],
        })

    @service_operation("apply_template", "roadmap_skill.templates")
    def apply_template(
        self,
        template_name: str,
        project_name: str,
        description: str = "",
        start_date: Optional[str] = None,
        target_date: Optional[str] = None,
    ) -> ServiceResult[Dict[str, Any]]:
        template = self.load_template(template_name)
        if template is None:
            return ServiceResult.not_found(f"Template '{template_name}' not found")

        project_type = template.get("projectType")
        if project_type not in PROJECT_TYPES:
            return ServiceResult.invalid(
                f"Template '{template_name}' has invalid projectType '{project_type}'"
            )

        today = date.today().isoformat()
        document = self.repository.create(CreateProjectInput(
            name=project_name,
            description=description or template.get("description", ""),
            project_type=project_type,
            start_date=start_date or today,
            target_date=target_date or today,
        ))
        project_id = document.project.id
        now = self.clock()

        tag_ids_by_name: Dict[str, str] = {}
        for template_tag in template["tags"]:
            name = template_tag["name"]
            if name.lower() in tag_ids_by_name:
                continue
            color = template_tag.get("color")
            tag = Tag(
                id=generate_id("tag"),
                name=name,
                color=color if color and is_hex_color(color) else default_tag_color(name),
                description=template_tag.get("description", ""),
                created_at=now,
            )
            document.tags.append(tag)
            tag_ids_by_name[name.lower()] = tag.id

        for template_task in template["tasks"]:
            priority = template_task.get("priority", "medium")
            document.tasks.append(Task(
                id=generate_id("task"),
                project_id=project_id,
                title=template_task["title"],
                description=template_task.get("description", ""),
                priority=priority if priority in TASK_PRIORITIES else "medium",
                tags=[
                    tag_ids_by_name[tag_name.lower()]
                    for tag_name in template_task.get("tags", [])
                    if tag_name.lower() in tag_ids_by_name
                ],
                created_at=now,
                updated_at=now,
            ))

        document.touch(now)
        with log_operation("apply_template", template=template_name, project_id=project_id):
            self.repository.save(document)

        logger.info(f"Applied template '{template_name}' as project {project_id}")
        observability_hooks.log_event("template_applied", project_id=project_id, template=template_name)
        return ServiceResult.ok({
            "project": document.project,
            "taskCount": len(document.tasks),
            "tagCount": len(document.tags),
        })
