"""Cross-project task search."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from .models import TaskSearchFilters
from .repository import ProjectRepository
from .roadmap_logging import log_performance

logger = logging.getLogger("roadmap_skill.search")


class TaskSearch:
    """Scan every stored project document and filter its tasks.

    Unparseable documents are skipped, the same tolerance the repository
    listing applies. Results are ``{"task", "project"}`` pairs in storage
    order.
    """

    def __init__(self, repository: ProjectRepository):
        self.repository = repository

    @log_performance("search_tasks")
    def search_tasks(self, filters: TaskSearchFilters) -> List[Dict[str, Any]]:
        if filters.project_id:
            document = self._read_quietly(filters.project_id)
            documents = [document] if document else []
        else:
            documents = self.repository.list_documents()

        results = [
            {"task": task, "project": document.project}
            for document in documents
            for task in document.tasks
            if filters.matches(task)
        ]
        logger.debug(f"Task search matched {len(results)} tasks across {len(documents)} projects")
        return results

    def _read_quietly(self, project_id: str):
        try:
            return self.repository.read(project_id)
        except (OSError, AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping unreadable project document '{project_id}': {e}")
            return None
