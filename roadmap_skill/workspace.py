"""Workspace wiring for Roadmap Skill.

A workspace binds one storage directory to the repository, search and
service objects that operate on it. Nothing here is process-global: tests
and tools build a workspace for the directory they need.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from . import config
from .backup import BackupService
from .models import utc_now
from .repository import Clock, ProjectRepository
from .roadmap_logging import log_error_with_context, observability_hooks
from .search import TaskSearch
from .store import DocumentStore
from .tags import TagService
from .tasks import TaskService
from .templates import TemplateService

logger = logging.getLogger("roadmap_skill.workspace")


class Workspace:
    """Own the services for a single project storage directory."""

    def __init__(
        self,
        storage_dir: Optional[Path | str] = None,
        *,
        templates_dir: Optional[Path | str] = None,
        clock: Clock = utc_now,
    ):
        try:
            self.storage_dir = Path(storage_dir) if storage_dir else config.get_storage_dir()
            self.templates_dir = Path(templates_dir) if templates_dir else config.get_templates_dir()

            self.store = DocumentStore(self.storage_dir)
            self.store.ensure_directory()

            self.repository = ProjectRepository(self.store, clock=clock)
            self.search = TaskSearch(self.repository)
            self.tasks = TaskService(self.repository, self.search, clock=clock)
            self.tags = TagService(self.repository, clock=clock)
            self.backup = BackupService(self.repository, clock=clock)
            self.templates = TemplateService(self.templates_dir, self.repository, clock=clock)
        except Exception as e:
            logger.error(f"Failed to initialize workspace: {e}")
            log_error_with_context(e, {"operation": "workspace_init", "storage_dir": str(storage_dir)})
            raise

        logger.debug(f"Workspace initialized at {self.storage_dir}")
        observability_hooks.log_event("workspace_initialized", storage_dir=str(self.storage_dir))
