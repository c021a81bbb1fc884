"""
Autowired Exceptions
====================

Error taxonomy for property autowiring. Every error carries a stable
``ErrorCode`` and, where one exists, the reflector (property or method)
that caused it so the offending declaration can be located quickly.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Standardized autowiring error codes."""

    MEMBER_ACCESS = "AW_1001"
    MISSING_SERVICE = "AW_1002"
    INVALID_STATE = "AW_1003"
    MISSING_CLASS = "AW_1004"
    UNEXPECTED_VALUE = "AW_1005"


class AutowiredError(Exception):
    """Base exception for autowiring errors."""

    code: ErrorCode = ErrorCode.INVALID_STATE

    def __init__(
        self,
        message: str,
        reflector: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.reflector = reflector
        self.details = details or {}
        if reflector is not None:
            self.details.setdefault("reflector", str(reflector))
        super().__init__(message)


class MemberAccessError(AutowiredError, AttributeError):
    """Misuse of the property injection protocol."""

    code = ErrorCode.MEMBER_ACCESS


class MissingServiceError(AutowiredError):
    """The container has no (or more than one) service of a required type."""

    code = ErrorCode.MISSING_SERVICE


class InvalidStateError(AutowiredError):
    """A declaration lacks the information needed to resolve it."""

    code = ErrorCode.INVALID_STATE


class MissingClassError(AutowiredError):
    """A referenced class or interface does not exist."""

    code = ErrorCode.MISSING_CLASS


class UnexpectedValueError(AutowiredError):
    """An annotation is misspelled or declares an incompatible type."""

    code = ErrorCode.UNEXPECTED_VALUE


__all__ = [
    "ErrorCode",
    "AutowiredError",
    "MemberAccessError",
    "MissingServiceError",
    "InvalidStateError",
    "MissingClassError",
    "UnexpectedValueError",
]
