"""Uniform result envelope returned by every service operation.

Expected failures (not found, validation, duplicates, ...) are reported
through :class:`OperationResult` instead of being raised.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, is_dataclass
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Why an operation failed."""

    validation = "validation"
    not_found = "not_found"
    duplicate = "duplicate"
    permission = "permission"
    window_expired = "window_expired"
    already_liked = "already_liked"
    not_liked = "not_liked"
    auto_moderated = "auto_moderated"


@dataclass
class OperationResult:
    """Outcome of a service call: ``success``, a user-facing ``message`` and an optional payload."""

    success: bool
    message: str
    error: Optional[ErrorKind] = None
    data: Any = None

    @classmethod
    def ok(cls, message: str, data: Any = None) -> OperationResult:
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, error: ErrorKind, message: str) -> OperationResult:
        return cls(success=False, message=message, error=error)

    def __bool__(self) -> bool:
        return self.success

    def to_dict(self) -> dict:
        payload = self.data
        if is_dataclass(payload) and not isinstance(payload, type):
            payload = asdict(payload)
        return {
            "success": self.success,
            "message": self.message,
            "error": self.error.value if self.error else None,
            "data": payload,
        }
