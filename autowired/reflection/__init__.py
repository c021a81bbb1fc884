"""
Reflection Module
=================

Helpers for reading class declarations: doc comment annotations, declared
properties and their types.
"""

from .annotations import ArgumentSet, annotation_names, parse_annotation, parse_doc_comment
from .members import (
    DeclaredProperty,
    class_properties,
    class_to_string,
    declared_properties,
    method_to_string,
    property_to_string,
    source_file,
)
from .types import (
    EMPTY,
    annotation_to_string,
    class_exists,
    class_name,
    expand_class_name,
    get_property_type,
    get_return_type,
    get_var_type,
    is_builtin,
    is_explicit,
    is_union,
    load_class,
    sibling_class_name,
)

__all__ = [
    "ArgumentSet",
    "annotation_names",
    "parse_annotation",
    "parse_doc_comment",
    "DeclaredProperty",
    "class_properties",
    "class_to_string",
    "declared_properties",
    "method_to_string",
    "property_to_string",
    "source_file",
    "EMPTY",
    "annotation_to_string",
    "class_exists",
    "class_name",
    "expand_class_name",
    "get_property_type",
    "get_return_type",
    "get_var_type",
    "is_builtin",
    "is_explicit",
    "is_union",
    "load_class",
    "sibling_class_name",
]
