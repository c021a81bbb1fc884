"""
Autowired
=========

Lazy, annotation-driven property injection for presenters and components.

This package provides:
- The ``AutowireProperties`` mixin and its metadata resolution
- A synchronous service container used as the service locator
- A file-dependency aware metadata cache
- Presenter base classes and FastAPI integration
"""

__version__ = "1.0.0"

from .exceptions import (
    AutowiredError,
    ErrorCode,
    InvalidStateError,
    MemberAccessError,
    MissingClassError,
    MissingServiceError,
    UnexpectedValueError,
)
from .properties import AutowireProperties, ClassMetadataTable, PropertyMetadata

__all__ = [
    "AutowireProperties",
    "ClassMetadataTable",
    "PropertyMetadata",
    "AutowiredError",
    "ErrorCode",
    "InvalidStateError",
    "MemberAccessError",
    "MissingClassError",
    "MissingServiceError",
    "UnexpectedValueError",
]
