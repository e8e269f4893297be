"""Tagged results returned by every service operation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from functools import wraps
from typing import Any, Dict, Generic, Optional, TypeVar

from .roadmap_logging import log_error_with_context

T = TypeVar("T")


class ErrorCode(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    DUPLICATE_ERROR = "DUPLICATE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass
class ServiceResult(Generic[T]):
    """Either a success payload or a failure message with an error code."""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    code: Optional[ErrorCode] = None

    @classmethod
    def ok(cls, data: T = None) -> "ServiceResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: ErrorCode, error: str) -> "ServiceResult[T]":
        return cls(success=False, error=error, code=code)

    @classmethod
    def not_found(cls, error: str) -> "ServiceResult[T]":
        return cls.fail(ErrorCode.NOT_FOUND, error)

    @classmethod
    def invalid(cls, error: str) -> "ServiceResult[T]":
        return cls.fail(ErrorCode.VALIDATION_ERROR, error)

    @classmethod
    def duplicate(cls, error: str) -> "ServiceResult[T]":
        return cls.fail(ErrorCode.DUPLICATE_ERROR, error)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for tool responses, converting model payloads recursively."""
        if self.success:
            return {"success": True, "data": _serialize(self.data)}
        return {"success": False, "error": self.error, "code": self.code.value}


def _serialize(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, dict):
        return {key: _serialize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(item) for item in value]
    return value


def project_not_found(project_id: str) -> ServiceResult:
    return ServiceResult.not_found(f"Project with ID '{project_id}' not found")


def service_operation(operation: str, logger_name: str):
    """Convert unexpected exceptions into ``INTERNAL_ERROR`` results.

    Expected conditions are returned as failures by the wrapped method
    itself; only exceptions reach this boundary.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                logging.getLogger(logger_name).error(f"Failed to {operation.replace('_', ' ')}: {e}")
                log_error_with_context(e, {"operation": operation, "args": args[1:], **kwargs})
                message = str(e) or f"Failed to {operation.replace('_', ' ')}"
                return ServiceResult.fail(ErrorCode.INTERNAL_ERROR, message)

        return wrapper
    return decorator
