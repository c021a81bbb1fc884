"""
Unit Tests for the Service Container

Tests for registration, lookup by type and constructor autowiring.
"""

import pytest
from structlog.testing import capture_logs

from autowired.caching import CacheStorage, FileStorage, MemoryStorage
from autowired.config import AutowiredSettings
from autowired.di import (
    CircularDependencyError,
    Container,
    ServiceDescriptor,
    ServiceLifetime,
    ServiceNotFoundError,
    build_container,
)
from tests.fixtures.services import (
    AmbiguousService,
    GenericSampleServiceFactory,
    SampleService,
    SampleServiceFactory,
)


class Repository:
    def __init__(self, service: SampleService, label: str = "articles"):
        self.service = service
        self.label = label


class Mailer:
    def __init__(self):
        self.disposed = False

    def dispose(self):
        self.disposed = True


class BrokenMailer(Mailer):
    def dispose(self):
        raise RuntimeError("smtp connection lost")


class Ping:
    def __init__(self, pong: "Pong"):
        self.pong = pong


class Pong:
    def __init__(self, ping: Ping):
        self.ping = ping


@pytest.fixture
def empty_container():
    return Container()


# =============================================================================
# Registration Tests
# =============================================================================


class TestRegistration:
    """Tests for registering services."""

    def test_default_name(self, empty_container):
        """Test that unnamed services are named after their type."""
        empty_container.register_singleton(SampleService)
        assert empty_container.has_service("tests.fixtures.services.SampleService")

    def test_named_instance(self, empty_container):
        """Test that added instances are returned as is."""
        service = SampleService("named")
        empty_container.add_service("mail.sample", service)
        assert empty_container.get_service("mail.sample") is service

    def test_unknown_name(self, empty_container):
        """Test that unknown names raise."""
        with pytest.raises(ServiceNotFoundError, match="'missing' is not registered"):
            empty_container.get_service("missing")

    def test_descriptor_requires_a_source(self):
        """Test that services without a way to create them are rejected."""
        with pytest.raises(ValueError, match="must have either"):
            ServiceDescriptor(name="empty", service_type=SampleService, lifetime=ServiceLifetime.SINGLETON)


# =============================================================================
# Resolution Tests
# =============================================================================


class TestGetByType:
    """Tests for resolving services by type."""

    def test_singleton(self, empty_container):
        """Test that singletons are created once."""
        empty_container.register_singleton(SampleService)
        assert empty_container.get_by_type(SampleService) is empty_container.get_by_type(SampleService)

    def test_transient(self, empty_container):
        """Test that transient services are created on each lookup."""
        empty_container.register_transient(SampleService, factory=lambda: SampleService("fresh"))
        first = empty_container.get_by_type(SampleService)
        assert first.name == "fresh"
        assert first is not empty_container.get_by_type(SampleService)

    def test_subclass_matches(self, empty_container):
        """Test that implementations match their abstract type."""
        empty_container.register_singleton(GenericSampleServiceFactory)
        assert isinstance(empty_container.get_by_type(SampleServiceFactory), GenericSampleServiceFactory)

    def test_not_found(self, empty_container):
        """Test the error for an unregistered type."""
        with pytest.raises(ServiceNotFoundError, match="Service of type tests.fixtures.services.SampleService not found."):
            empty_container.get_by_type(SampleService)

    def test_not_found_without_throw(self, empty_container):
        """Test that lookups may return None instead of raising."""
        assert empty_container.get_by_type(SampleService, throw=False) is None

    def test_multiple_found(self, empty_container):
        """Test that ambiguous lookups raise even without throw."""
        empty_container.register_singleton(AmbiguousService, name="b")
        empty_container.register_singleton(AmbiguousService, name="a")
        with pytest.raises(ServiceNotFoundError, match="Multiple services of type .*AmbiguousService found: a, b."):
            empty_container.get_by_type(AmbiguousService, throw=False)

    def test_not_autowired(self, empty_container):
        """Test that excluded services are only reachable by name."""
        empty_container.register_singleton(SampleService, name="hidden", autowired=False)
        assert empty_container.find_by_type(SampleService) == []
        assert empty_container.get_service("hidden").name == "default"


class TestAutowiring:
    """Tests for constructor autowiring."""

    def test_constructor_arguments(self, empty_container):
        """Test that annotated parameters are resolved by type."""
        empty_container.register_singleton(SampleService)
        empty_container.register_transient(Repository)

        repository = empty_container.get_by_type(Repository)
        assert repository.service is empty_container.get_by_type(SampleService)
        assert repository.label == "articles"

    def test_factory_arguments(self, empty_container):
        """Test that factory parameters are resolved by type."""
        empty_container.register_singleton(SampleService)
        def create_repository(service: SampleService) -> Repository:
            return Repository(service, "factory")

        empty_container.register_transient(Repository, factory=create_repository)
        assert empty_container.get_by_type(Repository).label == "factory"

    def test_circular_dependency(self, empty_container):
        """Test that cycles are detected."""
        empty_container.register_transient(Ping)
        empty_container.register_transient(Pong)
        with pytest.raises(CircularDependencyError, match="Circular dependency detected"):
            empty_container.get_by_type(Ping)

    def test_dispose(self, empty_container):
        """Test that singletons are disposed."""
        empty_container.register_singleton(Mailer)
        mailer = empty_container.get_by_type(Mailer)
        empty_container.dispose()
        assert mailer.disposed

    def test_dispose_failure_is_logged(self, empty_container):
        """Test that a failing dispose is logged and the others still run."""
        empty_container.register_singleton(BrokenMailer, name="mail.broken")
        empty_container.register_singleton(Mailer, name="mail.default")
        empty_container.get_service("mail.broken")
        mailer = empty_container.get_service("mail.default")

        with capture_logs() as logs:
            empty_container.dispose()

        assert mailer.disposed
        assert logs == [
            {
                "event": "singleton_dispose_failed",
                "service": "mail.broken",
                "error": "smtp connection lost",
                "log_level": "error",
            }
        ]


# =============================================================================
# Container Factory Tests
# =============================================================================


class TestBuildContainer:
    """Tests for build_container."""

    def test_memory_storage(self):
        """Test that metadata is kept in memory by default."""
        container = build_container(AutowiredSettings())
        storage = container.get_service("autowired.cache_storage")
        assert isinstance(storage, MemoryStorage)
        assert container.get_by_type(CacheStorage) is storage

    def test_file_storage(self, tmp_path):
        """Test that a cache directory selects the file storage."""
        settings = AutowiredSettings(cache_dir=str(tmp_path / "cache"), cache_storage_service="cache.meta")
        container = build_container(settings)
        storage = container.get_service("cache.meta")
        assert isinstance(storage, FileStorage)
        assert (tmp_path / "cache").is_dir()
