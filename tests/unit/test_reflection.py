"""
Unit Tests for Reflection Helpers

Tests for declared property discovery and type resolution.
"""

from typing import Optional

import pytest

from autowired import AutowireProperties
from autowired.reflection import (
    EMPTY,
    class_exists,
    class_properties,
    declared_properties,
    expand_class_name,
    get_property_type,
    get_return_type,
    get_var_type,
    is_union,
    load_class,
    sibling_class_name,
)
from tests.fixtures import presenters, services
from tests.fixtures.presenters import AutowirePresenter, ChildPresenter, PrivatePropertyPresenter
from tests.fixtures.services import SampleService, SampleServiceFactory


class Outer:
    class Inner:
        pass


def _property(cls, name):
    return next(prop for prop in declared_properties(cls) if prop.name == name)


# =============================================================================
# Member Tests
# =============================================================================


class TestDeclaredProperties:
    """Tests for reading class-body declarations."""

    def test_class_properties(self):
        """Test that annotated and assigned attributes are listed in order."""
        names = [prop.name for prop in class_properties(AutowirePresenter)]
        assert names == [
            "service",
            "factory_result",
            "factory_with_arguments",
            "var_annotated",
            "optional_service",
            "imported",
            "plain",
            "title",
        ]

    def test_doc_comments(self):
        """Test that attribute docstrings are attached and cleaned."""
        props = {prop.name: prop for prop in class_properties(AutowirePresenter)}
        assert props["service"].doc == "@autowire"
        assert props["var_annotated"].doc.splitlines()[-1] == "@var SampleService"
        assert props["title"].doc == ""
        assert props["service"].annotated
        assert not props["var_annotated"].annotated

    def test_inherited_properties_keep_declaring_class(self):
        """Test that inherited declarations report the parent class."""
        assert _property(ChildPresenter, "service").declaring_class is AutowirePresenter
        assert _property(ChildPresenter, "extra").declaring_class is ChildPresenter

    def test_ignored_classes(self):
        """Test that ignored classes contribute no properties."""
        props = declared_properties(ChildPresenter, ignore=[AutowirePresenter, AutowireProperties])
        assert [prop.name for prop in props] == ["extra"]

    def test_private_property(self):
        """Test that name-mangled properties are recognised."""
        prop = _property(PrivatePropertyPresenter, "__service")
        assert prop.is_private
        assert prop.attribute_name == "_PrivatePropertyPresenter__service"

    def test_string_form(self):
        """Test that properties print as qualified names."""
        assert str(_property(AutowirePresenter, "service")) == (
            "tests.fixtures.presenters.AutowirePresenter.service"
        )

    def test_class_without_source(self):
        """Test that dynamically created classes have no declared properties."""
        dynamic = type("Dynamic", (), {"service": None})
        assert class_properties(dynamic) == []


# =============================================================================
# Type Resolution Tests
# =============================================================================


class TestTypeResolution:
    """Tests for class names and annotations."""

    def test_load_class(self):
        """Test dotted, explicit and nested names."""
        assert load_class("tests.fixtures.services.SampleService") is SampleService
        assert load_class("tests.fixtures.services:SampleService") is SampleService
        assert load_class(f"{__name__}.Outer.Inner") is Outer.Inner

    @pytest.mark.parametrize(
        "name",
        ["", "SampleService", "tests.fixtures.services.Missing", "nowhere_at_all.Service", "tests.fixtures.services.Optional"],
    )
    def test_load_class_missing(self, name):
        """Test that unknown names and non-classes are not loaded."""
        assert load_class(name) is None

    def test_class_exists_rejects_builtins(self):
        """Test that built-in types do not count as classes."""
        assert load_class("builtins.int") is int
        assert not class_exists("builtins.int")
        assert class_exists("tests.fixtures.services.SampleService")

    def test_expand_imported_name(self):
        """Test that imports of the declaring module are used."""
        assert expand_class_name("SampleService", AutowirePresenter) == "tests.fixtures.services.SampleService"
        assert expand_class_name("ImportedService", AutowirePresenter) == (
            "tests.fixtures.use_expansion.imported_service.ImportedService"
        )

    def test_expand_relative_name(self):
        """Test that unknown names are relative to the package."""
        assert expand_class_name("services.SampleService", AutowirePresenter) == (
            "tests.fixtures.services.SampleService"
        )
        assert sibling_class_name("Missing", AutowirePresenter) == "tests.fixtures.Missing"

    def test_expand_explicit_name(self):
        """Test that explicit names are left as written."""
        assert expand_class_name("somewhere:Service", AutowirePresenter) == "somewhere:Service"

    def test_expand_builtin_name(self):
        """Test that builtins are recognised."""
        assert expand_class_name("int", AutowirePresenter) == "builtins.int"

    def test_property_type(self):
        """Test type hints, Optional and @var."""
        assert get_property_type(_property(AutowirePresenter, "service")) == "tests.fixtures.services.SampleService"
        assert get_property_type(_property(AutowirePresenter, "optional_service")) == (
            "tests.fixtures.services.SampleService"
        )
        assert get_property_type(_property(AutowirePresenter, "var_annotated")) is None
        assert get_var_type(_property(AutowirePresenter, "var_annotated")) == "tests.fixtures.services.SampleService"

    def test_return_type(self):
        """Test annotated, documented and missing return types."""
        assert get_return_type(SampleServiceFactory.create, SampleServiceFactory) == (
            "tests.fixtures.services.SampleService"
        )
        assert get_return_type(services.DocReturnFactory.create, services.DocReturnFactory) == (
            "tests.fixtures.services.SampleService"
        )
        assert get_return_type(services.UntypedFactory.create, services.UntypedFactory) is EMPTY
        assert is_union(get_return_type(services.NullableFactory.create, services.NullableFactory))

    def test_is_union(self):
        """Test union detection for both spellings."""
        assert is_union(Optional[SampleService])
        assert is_union(SampleService | None)
        assert not is_union(SampleService)

    def test_presenters_module_has_no_services_import(self):
        """Guard for the sibling resolution fixtures."""
        assert not hasattr(presenters, "services")
