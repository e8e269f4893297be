"""Roadmap Skill - personal project, task and tag management over MCP."""

from .models import (
    Milestone,
    Project,
    ProjectDocument,
    Tag,
    Task,
    TaskSearchFilters,
)
from .results import ErrorCode, ServiceResult
from .workspace import Workspace

__all__ = [
    "ErrorCode",
    "Milestone",
    "Project",
    "ProjectDocument",
    "ServiceResult",
    "Tag",
    "Task",
    "TaskSearchFilters",
    "Workspace",
]
