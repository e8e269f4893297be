"""Export and import of the full project document set."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from .models import SCHEMA_VERSION, ProjectDocument, utc_now
from .repository import Clock, ProjectRepository
from .results import ServiceResult, service_operation
from .roadmap_logging import log_operation, observability_hooks

logger = logging.getLogger("roadmap_skill.backup")


class BackupService:
    """Serialize every project into one payload and restore it again."""

    def __init__(self, repository: ProjectRepository, clock: Clock = utc_now):
        self.repository = repository
        self.clock = clock

    @service_operation("export_data", "roadmap_skill.backup")
    def export_all(self) -> ServiceResult[Dict[str, Any]]:
        documents = self.repository.list_documents()
        payload = {
            "version": SCHEMA_VERSION,
            "exportedAt": self.clock(),
            "projectCount": len(documents),
            "projects": [document.to_dict() for document in documents],
        }
        logger.info(f"Exported {len(documents)} projects")
        return ServiceResult.ok(payload)

    @service_operation("import_data", "roadmap_skill.backup")
    def import_all(self, payload: Dict[str, Any], overwrite: bool = True) -> ServiceResult[Dict[str, Any]]:
        """Write every valid document in ``payload``; invalid entries are reported, not fatal."""
        if not isinstance(payload, dict) or not isinstance(payload.get("projects"), list):
            return ServiceResult.invalid("Backup payload must be an object with a 'projects' list")

        imported = 0
        skipped = 0
        errors: List[str] = []

        with log_operation("import_data", project_count=len(payload["projects"]), overwrite=overwrite):
            for index, entry in enumerate(payload["projects"]):
                try:
                    document = ProjectDocument.from_dict(entry)
                    project_id = document.project.id
                    self.repository.store.path_for(project_id)
                except (AttributeError, KeyError, TypeError, ValueError) as e:
                    skipped += 1
                    errors.append(f"Entry {index}: invalid project document ({e})")
                    continue

                if not overwrite and self.repository.read(project_id) is not None:
                    skipped += 1
                    errors.append(f"Entry {index}: project '{project_id}' already exists")
                    continue

                self.repository.save(document)
                imported += 1

        logger.info(f"Imported {imported} projects ({skipped} skipped)")
        observability_hooks.log_event("data_imported", imported=imported, skipped=skipped)
        return ServiceResult.ok({"importedCount": imported, "skippedCount": skipped, "errors": errors})
