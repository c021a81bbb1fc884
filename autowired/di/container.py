"""
Dependency Injection Container
==============================

A lightweight, synchronous service container used as the service locator
for autowired presenter properties.

Features:
    - Singleton and transient service lifetimes
    - Named services and lookup by type (autowiring)
    - Factory-based lazy initialization
    - Constructor and factory parameters resolved by their annotations
    - Thread-safe singleton management

Usage:
    # Register services
    container = Container()
    container.register_singleton(DatabaseManager, factory=create_database)
    container.register_transient(ArticleRepository)
    container.add_service("autowired.cache_storage", MemoryStorage())

    # Resolve services
    db = container.get_by_type(DatabaseManager)
    storage = container.get_service("autowired.cache_storage")
"""

from __future__ import annotations

import inspect
import threading
from dataclasses import dataclass
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    List,
    Optional,
    Type,
    TypeVar,
)

import structlog

from ..config import AutowiredSettings, get_settings

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class ServiceLifetime(str, Enum):
    """Service lifetime definitions."""

    SINGLETON = "singleton"  # Single instance for container lifetime
    TRANSIENT = "transient"  # New instance every time


@dataclass
class ServiceDescriptor(Generic[T]):
    """Describes how to create and manage a service."""

    name: str
    service_type: Type[T]
    lifetime: ServiceLifetime
    factory: Optional[Callable[..., T]] = None
    implementation_type: Optional[Type[T]] = None
    instance: Optional[T] = None
    autowired: bool = True  # Candidate for get_by_type()

    def __post_init__(self):
        """Validate descriptor configuration."""
        if self.factory is None and self.implementation_type is None and self.instance is None:
            raise ValueError(
                f"Service {self.name} must have either "
                "a factory, an implementation_type or an instance"
            )


class ContainerError(Exception):
    """Base exception for container errors."""
    pass


class ServiceNotFoundError(ContainerError):
    """Service not registered in container, or registered ambiguously."""
    pass


class CircularDependencyError(ContainerError):
    """Circular dependency detected during resolution."""
    pass


class Container:
    """Dependency injection container.

    Thread-safe container for managing service registrations and resolution.
    Services are registered under a name; unnamed registrations are named
    after their service type.

    Example:
        container = Container()

        # Register singleton database
        container.register_singleton(
            DatabaseManager,
            factory=lambda: DatabaseManager(config.database_url)
        )

        # Dependencies of a constructor are autowired by type
        container.register_transient(UnitOfWork)

        uow = container.get_by_type(UnitOfWork)
    """

    def __init__(self):
        """Initialize empty container."""
        self._descriptors: Dict[str, ServiceDescriptor] = {}
        self._singleton_instances: Dict[str, Any] = {}
        self._lock = threading.RLock()
        self._resolution_stack: List[str] = []

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def register_singleton(
        self,
        service_type: Type[T],
        factory: Optional[Callable[..., T]] = None,
        implementation_type: Optional[Type[T]] = None,
        instance: Optional[T] = None,
        name: Optional[str] = None,
        autowired: bool = True,
    ) -> "Container":
        """Register a singleton service.

        Args:
            service_type: The service interface/type
            factory: Optional factory function to create instance
            implementation_type: Optional concrete implementation type
            instance: Optional pre-created instance
            name: Optional service name, defaults to the type's qualified name
            autowired: Whether the service is a candidate for get_by_type()

        Returns:
            Self for method chaining
        """
        name = name or _default_name(service_type)
        with self._lock:
            if instance is not None:
                self._descriptors[name] = ServiceDescriptor(
                    name=name,
                    service_type=service_type,
                    lifetime=ServiceLifetime.SINGLETON,
                    instance=instance,
                    autowired=autowired,
                )
                self._singleton_instances[name] = instance
            else:
                self._descriptors[name] = ServiceDescriptor(
                    name=name,
                    service_type=service_type,
                    lifetime=ServiceLifetime.SINGLETON,
                    factory=factory,
                    implementation_type=None if factory else implementation_type or service_type,
                    autowired=autowired,
                )
                self._singleton_instances.pop(name, None)
        return self

    def register_transient(
        self,
        service_type: Type[T],
        factory: Optional[Callable[..., T]] = None,
        implementation_type: Optional[Type[T]] = None,
        name: Optional[str] = None,
        autowired: bool = True,
    ) -> "Container":
        """Register a transient service (new instance every resolution).

        Args:
            service_type: The service interface/type
            factory: Optional factory function
            implementation_type: Optional concrete type
            name: Optional service name
            autowired: Whether the service is a candidate for get_by_type()

        Returns:
            Self for method chaining
        """
        name = name or _default_name(service_type)
        with self._lock:
            self._descriptors[name] = ServiceDescriptor(
                name=name,
                service_type=service_type,
                lifetime=ServiceLifetime.TRANSIENT,
                factory=factory,
                implementation_type=None if factory else implementation_type or service_type,
                autowired=autowired,
            )
            self._singleton_instances.pop(name, None)
        return self

    def add_service(self, name: str, instance: Any, autowired: bool = True) -> "Container":
        """Register a pre-created instance under a name."""
        return self.register_singleton(
            type(instance), instance=instance, name=name, autowired=autowired
        )

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def has_service(self, name: str) -> bool:
        """Check whether a service with the given name is registered."""
        return name in self._descriptors

    def get_service(self, name: str) -> Any:
        """Resolve a service by name.

        Raises:
            ServiceNotFoundError: If no service has this name
        """
        descriptor = self._descriptors.get(name)
        if descriptor is None:
            raise ServiceNotFoundError(
                f"Service '{name}' is not registered. "
                f"Available services: {sorted(self._descriptors)}"
            )
        return self._resolve_internal(descriptor)

    def find_by_type(self, service_type: Type) -> List[str]:
        """Return names of all autowired services assignable to a type."""
        return [
            name
            for name, descriptor in self._descriptors.items()
            if descriptor.autowired and issubclass(descriptor.service_type, service_type)
        ]

    def get_by_type(self, service_type: Type[T], throw: bool = True) -> Optional[T]:
        """Resolve the single autowired service assignable to a type.

        Args:
            service_type: The type to resolve
            throw: Raise when no service is found instead of returning None

        Returns:
            Service instance, or None when not found and ``throw`` is False

        Raises:
            ServiceNotFoundError: If zero (and ``throw``) or several
                services match
        """
        names = self.find_by_type(service_type)
        type_name = f"{service_type.__module__}.{service_type.__qualname__}"
        if not names:
            if not throw:
                return None
            raise ServiceNotFoundError(f"Service of type {type_name} not found.")
        if len(names) > 1:
            raise ServiceNotFoundError(
                f"Multiple services of type {type_name} found: {', '.join(sorted(names))}."
            )
        return self._resolve_internal(self._descriptors[names[0]])

    def _resolve_internal(self, descriptor: ServiceDescriptor[T]) -> T:
        """Internal resolution with circular dependency tracking.

        Args:
            descriptor: Descriptor of the service to resolve

        Returns:
            Resolved service instance
        """
        with self._lock:
            if descriptor.lifetime == ServiceLifetime.SINGLETON:
                if descriptor.name in self._singleton_instances:
                    return self._singleton_instances[descriptor.name]

            # Check for circular dependency
            if descriptor.name in self._resolution_stack:
                cycle = " -> ".join(self._resolution_stack)
                raise CircularDependencyError(
                    f"Circular dependency detected: {cycle} -> {descriptor.name}"
                )

            self._resolution_stack.append(descriptor.name)
            try:
                instance = self._create_instance(descriptor)
            finally:
                self._resolution_stack.pop()

            if descriptor.lifetime == ServiceLifetime.SINGLETON:
                self._singleton_instances[descriptor.name] = instance

            return instance

    def _create_instance(self, descriptor: ServiceDescriptor[T]) -> T:
        """Create a service instance using factory or constructor.

        Args:
            descriptor: Service descriptor

        Returns:
            New service instance
        """
        if descriptor.factory:
            factory = descriptor.factory
            return factory(**self._autowire_arguments(factory))

        elif descriptor.implementation_type:
            impl_type = descriptor.implementation_type
            return impl_type(**self._autowire_arguments(impl_type))

        raise ContainerError(f"Cannot create instance of service {descriptor.name}")

    def _autowire_arguments(self, target: Callable[..., Any]) -> Dict[str, Any]:
        """Resolve annotated parameters of a callable that the container can provide."""
        try:
            sig = inspect.signature(target, eval_str=True)
        except ValueError:
            # Builtins without signature metadata
            return {}

        kwargs = {}
        for param_name, param in sig.parameters.items():
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            if param.annotation is param.empty or not inspect.isclass(param.annotation):
                continue
            if not self.find_by_type(param.annotation):
                continue
            kwargs[param_name] = self.get_by_type(param.annotation)
        return kwargs

    def dispose(self):
        """Dispose all singleton instances."""
        for name, instance in self._singleton_instances.items():
            if hasattr(instance, "dispose"):
                try:
                    instance.dispose()
                except Exception as e:
                    logger.error("singleton_dispose_failed", service=name, error=str(e))

        self._singleton_instances.clear()


def _default_name(service_type: Type) -> str:
    return f"{service_type.__module__}.{service_type.__qualname__}"


# Global container instance
_container: Optional[Container] = None


def get_container() -> Container:
    """Get the global container instance.

    Returns:
        The global Container instance
    """
    global _container
    if _container is None:
        _container = build_container()
    return _container


def build_container(settings: Optional[AutowiredSettings] = None) -> Container:
    """Create a container with the services autowiring relies on.

    Registers the metadata cache storage under ``settings.cache_storage_service``:
    a ``FileStorage`` when ``cache_dir`` is configured, a ``MemoryStorage``
    otherwise.

    Args:
        settings: Settings to use, defaults to ``get_settings()``

    Returns:
        Configured container
    """
    from ..caching import CacheStorage, FileStorage, MemoryStorage

    settings = settings or get_settings()
    container = Container()
    if settings.cache_dir:
        storage: CacheStorage = FileStorage(settings.cache_dir)
    else:
        storage = MemoryStorage()
    container.register_singleton(
        CacheStorage,
        instance=storage,
        name=settings.cache_storage_service,
    )
    return container


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
