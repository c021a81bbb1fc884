"""Shared pytest fixtures for testing."""

import pytest

from autowired.caching import MemoryStorage
from autowired.config import get_settings
from autowired.di import Container
from tests.fixtures.containers import CountingContainer
from tests.fixtures.services import (
    AmbiguousService,
    BuiltinFactory,
    DocReturnFactory,
    GenericSampleServiceFactory,
    MissingReturnClassFactory,
    NullableFactory,
    SampleService,
    SampleServiceFactory,
    UntypedFactory,
)
from tests.fixtures.use_expansion.imported_service import ImportedService

CACHE_STORAGE_SERVICE = "autowired.cache_storage"


def configure_services(container: Container, storage: MemoryStorage) -> Container:
    """Register the services the fixture presenters depend on."""
    container.add_service(CACHE_STORAGE_SERVICE, storage)
    container.register_transient(SampleService, factory=lambda: SampleService("autowired"))
    container.register_singleton(SampleServiceFactory, implementation_type=GenericSampleServiceFactory)
    container.register_singleton(ImportedService)
    container.register_singleton(DocReturnFactory)
    container.register_singleton(UntypedFactory)
    container.register_singleton(NullableFactory)
    container.register_singleton(BuiltinFactory)
    container.register_singleton(MissingReturnClassFactory)
    container.register_singleton(AmbiguousService, name="ambiguous.first")
    container.register_singleton(AmbiguousService, name="ambiguous.second")
    return container


@pytest.fixture(autouse=True)
def settings(monkeypatch):
    """Isolate settings from the environment of the test run."""
    for name in ("AUTOWIRED_CACHE_DIR", "AUTOWIRED_CACHE_NAMESPACE", "AUTOWIRED_CACHE_STORAGE_SERVICE"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


# =============================================================================
# Container Fixtures
# =============================================================================


@pytest.fixture
def mtimes():
    """Fake file modification times, keyed by path; unknown files report 1.0."""
    return {}


@pytest.fixture
def storage(mtimes) -> MemoryStorage:
    """Create a metadata storage with controllable file modification times."""
    return MemoryStorage(mtime=lambda path: mtimes.get(path, 1.0))


@pytest.fixture
def container(storage) -> Container:
    """Create a container with all fixture services registered."""
    return configure_services(Container(), storage)


@pytest.fixture
def counting_container(storage) -> CountingContainer:
    """Create a container recording lookups, sharing the metadata storage."""
    return configure_services(CountingContainer(), storage)
