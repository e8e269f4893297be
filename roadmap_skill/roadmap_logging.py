"""Logging and observability utilities for Roadmap Skill.

This module provides structured logging, operation timing and
observability hooks for project, task and tag events.

Handlers always write to stderr: stdout is reserved for the MCP stdio
transport.
"""

from __future__ import annotations

import json
import logging as std_logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

LOGGER_NAME = "roadmap_skill"


def setup_logging(log_level: Union[str, int] = std_logging.INFO, log_file: Optional[Path] = None) -> None:
    """Setup structured logging for Roadmap Skill."""

    logger = std_logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)

    # Clear existing handlers
    logger.handlers.clear()

    detailed_formatter = std_logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(funcName)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = std_logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(detailed_formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = std_logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(std_logging.DEBUG)
        file_handler.setFormatter(JsonFormatter())
        logger.addHandler(file_handler)

    logger.info("Roadmap Skill logging initialized")


class JsonFormatter(std_logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: std_logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_entry.update(record.extra_fields)

        return json.dumps(log_entry, default=str)


def log_performance(operation_name: str):
    """Decorator to log the duration of an operation."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            logger = std_logging.getLogger(f"{LOGGER_NAME}.performance")

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration = time.perf_counter() - start_time
                logger.error(
                    f"Failed operation: {operation_name} after {duration:.3f}s - {e}",
                    extra={"extra_fields": {
                        "operation": operation_name,
                        "duration": duration,
                        "status": "error",
                        "error_type": type(e).__name__,
                    }},
                )
                raise

            duration = time.perf_counter() - start_time
            logger.debug(
                f"Completed operation: {operation_name} in {duration:.3f}s",
                extra={"extra_fields": {
                    "operation": operation_name,
                    "duration": duration,
                    "status": "success",
                }},
            )
            return result

        return wrapper
    return decorator


@contextmanager
def log_operation(operation_name: str, **extra_fields):
    """Context manager to log operations with custom fields."""
    logger = std_logging.getLogger(f"{LOGGER_NAME}.operations")
    start_time = time.perf_counter()

    logger.debug(f"Starting operation: {operation_name}", extra={"extra_fields": {
        "operation": operation_name,
        "status": "started",
        **extra_fields
    }})

    try:
        yield
    except Exception as e:
        duration = time.perf_counter() - start_time
        logger.error(f"Failed operation: {operation_name} after {duration:.3f}s - {e}", extra={"extra_fields": {
            "operation": operation_name,
            "status": "failed",
            "duration": duration,
            "error_type": type(e).__name__,
            "error_message": str(e),
            **extra_fields
        }})
        raise

    duration = time.perf_counter() - start_time
    logger.info(f"Completed operation: {operation_name} in {duration:.3f}s", extra={"extra_fields": {
        "operation": operation_name,
        "status": "completed",
        "duration": duration,
        **extra_fields
    }})


class ObservabilityHooks:
    """Observability hooks for project, task and tag events."""

    def __init__(self):
        self.hooks: Dict[str, List[Callable[..., Any]]] = {}
        self.logger = std_logging.getLogger(f"{LOGGER_NAME}.observability")

    def register_hook(self, event_type: str, callback: Callable[..., Any]) -> None:
        """Register a callback for a specific event type."""
        self.hooks.setdefault(event_type, []).append(callback)
        self.logger.debug(f"Registered hook for event: {event_type}")

    def unregister_hook(self, event_type: str, callback: Callable[..., Any]) -> None:
        """Remove a previously registered callback, if present."""
        callbacks = self.hooks.get(event_type, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def trigger_hooks(self, event_type: str, **data) -> None:
        """Trigger all callbacks for a specific event type."""
        for hook in list(self.hooks.get(event_type, [])):
            try:
                hook(**data)
            except Exception as e:
                # Hooks never fail the mutation that fired them.
                self.logger.error(f"Hook failed for event {event_type}: {e}")

    def log_event(self, event_type: str, project_id: Optional[str] = None, **data) -> None:
        """Log a domain event and trigger hooks."""
        event_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "project_id": project_id,
            **data
        }

        self.logger.info(f"Event: {event_type}", extra={"extra_fields": {"event_type": event_type, **event_data}})
        self.trigger_hooks(event_type, **event_data)


# Global observability hooks instance
observability_hooks = ObservabilityHooks()


def log_error_with_context(error: Exception, context: Dict[str, Any], **extra_fields):
    """Log an error with rich context information."""
    logger = std_logging.getLogger(f"{LOGGER_NAME}.errors")

    error_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "error_type": type(error).__name__,
        "error_message": str(error),
        "context": context,
        **extra_fields
    }

    logger.error(
        f"Error in {context.get('operation', 'unknown operation')}: {error}",
        extra={"extra_fields": error_data},
        exc_info=error,
    )
