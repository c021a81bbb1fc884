"""
Dependency Injection Module
===========================

Provides the service container used as the locator for autowired properties.

Usage:
    from autowired.di import Container, build_container

    container = build_container()
    container.register_singleton(DatabaseManager, factory=create_db)

    db = container.get_by_type(DatabaseManager)
"""

from .container import (
    Container,
    ServiceLifetime,
    ServiceDescriptor,
    ContainerError,
    ServiceNotFoundError,
    CircularDependencyError,
    get_container,
    build_container,
)

__all__ = [
    "Container",
    "ServiceLifetime",
    "ServiceDescriptor",
    "ContainerError",
    "ServiceNotFoundError",
    "CircularDependencyError",
    "get_container",
    "build_container",
]
