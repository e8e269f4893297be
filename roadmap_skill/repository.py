"""Project lifecycle on top of the document store."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from .models import CreateProjectInput, Project, ProjectDocument, generate_id, utc_now
from .roadmap_logging import log_operation, observability_hooks
from .store import DocumentStore

logger = logging.getLogger("roadmap_skill.repository")

PROJECT_UPDATE_FIELDS = frozenset(
    {"name", "description", "project_type", "status", "start_date", "target_date"}
)

Clock = Callable[[], str]


class ProjectRepository:
    """Sole reader and writer of project documents."""

    def __init__(self, store: DocumentStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock

    def create(self, data: CreateProjectInput) -> ProjectDocument:
        now = self.clock()
        project = Project(
            id=generate_id("proj"),
            name=data.name,
            description=data.description,
            project_type=data.project_type,
            status="active",
            start_date=data.start_date,
            target_date=data.target_date,
            created_at=now,
            updated_at=now,
        )
        document = ProjectDocument(project=project)
        with log_operation("create_project", project_id=project.id):
            self.save(document)
        observability_hooks.log_event("project_created", project_id=project.id, name=project.name)
        return document

    def read(self, project_id: str) -> Optional[ProjectDocument]:
        data = self.store.read(project_id)
        if data is None:
            return None
        return ProjectDocument.from_dict(data)

    def save(self, document: ProjectDocument) -> None:
        self.store.write(document.project.id, document.to_dict())

    def update(self, project_id: str, fields: Dict[str, Any]) -> Optional[ProjectDocument]:
        unknown = set(fields) - PROJECT_UPDATE_FIELDS
        if unknown:
            raise ValueError(f"Unknown project fields: {', '.join(sorted(unknown))}")

        document = self.read(project_id)
        if document is None:
            return None

        for name, value in fields.items():
            setattr(document.project, name, value)
        document.touch(self.clock())

        with log_operation("update_project", project_id=project_id, fields=sorted(fields)):
            self.save(document)
        observability_hooks.log_event("project_updated", project_id=project_id, fields=sorted(fields))
        return document

    def delete(self, project_id: str) -> bool:
        deleted = self.store.delete(project_id)
        if deleted:
            observability_hooks.log_event("project_deleted", project_id=project_id)
        return deleted

    def list_documents(self) -> List[ProjectDocument]:
        """Every parseable document; corrupt ones are logged and skipped."""
        documents: List[ProjectDocument] = []
        for project_id, data in self.store.iter_documents():
            try:
                documents.append(ProjectDocument.from_dict(data))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed project document '{project_id}': {e}")
        return documents

    def list_documents_by_recency(self) -> List[ProjectDocument]:
        """Parseable documents, most recently updated project first."""
        return sorted(
            self.list_documents(),
            key=lambda document: _timestamp_key(document.project.updated_at),
            reverse=True,
        )

    def list(self) -> List[Dict[str, Any]]:
        """Project summaries, most recently updated first."""
        return [
            {
                "project": document.project,
                "taskCount": len(document.tasks),
                "milestoneCount": len(document.milestones),
            }
            for document in self.list_documents_by_recency()
        ]


def _timestamp_key(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return datetime.min.replace(tzinfo=timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
