"""One-JSON-document-per-project filesystem store."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

logger = logging.getLogger("roadmap_skill.store")

Document = Dict[str, Any]


class DocumentStore:
    """Persist project documents as ``<storage_dir>/<project_id>.json``.

    ``read`` distinguishes a missing document (None) from any other failure
    (raised). Enumeration via ``iter_documents`` skips files that cannot be
    read or parsed.
    """

    SUFFIX = ".json"

    def __init__(self, storage_dir: Path | str):
        self.storage_dir = Path(storage_dir)

    def ensure_directory(self) -> None:
        try:
            self.storage_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create storage directory {self.storage_dir}: {e}")
            raise RuntimeError(f"Could not create storage directory {self.storage_dir}: {e}") from e

    @staticmethod
    def is_valid_id(project_id: str) -> bool:
        if not project_id or project_id.startswith("."):
            return False
        return "/" not in project_id and "\\" not in project_id

    def path_for(self, project_id: str) -> Path:
        if not self.is_valid_id(project_id):
            raise ValueError(f"Invalid project ID '{project_id}'")
        return self.storage_dir / f"{project_id}{self.SUFFIX}"

    def read(self, project_id: str) -> Optional[Document]:
        # An ID that cannot name a file cannot name a stored project either.
        if not self.is_valid_id(project_id):
            return None
        path = self.path_for(project_id)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to read JSON file {path}: {e}") from e

    def write(self, project_id: str, document: Document) -> None:
        """Overwrite the whole document, replacing the file atomically."""
        self.ensure_directory()
        path = self.path_for(project_id)
        content = json.dumps(document, indent=2, ensure_ascii=False)
        fd, tmp_name = tempfile.mkstemp(dir=self.storage_dir, prefix=f".{project_id}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug(f"Wrote project document {path}")

    def delete(self, project_id: str) -> bool:
        if not self.is_valid_id(project_id):
            return False
        try:
            self.path_for(project_id).unlink()
        except FileNotFoundError:
            return False
        logger.debug(f"Deleted project document for {project_id}")
        return True

    def list_ids(self) -> List[str]:
        if not self.storage_dir.exists():
            return []
        return sorted(
            path.stem
            for path in self.storage_dir.glob(f"*{self.SUFFIX}")
            if not path.name.startswith(".")
        )

    def iter_documents(self) -> Iterator[Tuple[str, Document]]:
        """Yield ``(project_id, document)`` for every readable document."""
        for project_id in self.list_ids():
            try:
                document = self.read(project_id)
            except (OSError, ValueError) as e:
                logger.warning(f"Skipping unreadable project document '{project_id}': {e}")
                continue
            if document is not None:
                yield project_id, document
