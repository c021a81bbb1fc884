"""
Type resolution for declared properties and methods.

Class names are handled as qualified strings (``package.module.QualName``)
so resolved metadata can be cached and compared without holding class
objects. The form ``package.module:QualName`` is an explicit absolute name
and is never expanded against a namespace.
"""

from __future__ import annotations

import builtins
import importlib
import inspect
import re
import sys
import types
import typing
from typing import Any, Callable, Optional

from .annotations import parse_annotation
from .members import DeclaredProperty, class_to_string

_DOTTED_NAME = re.compile(r"[A-Za-z_]\w*(\.[A-Za-z_]\w*)*")

# Marker for a missing annotation, ``None`` being a valid one
EMPTY = inspect.Signature.empty


def class_name(cls: type) -> str:
    """Qualified name of a class."""
    return class_to_string(cls)


def is_explicit(name: str) -> bool:
    """Whether a name uses the explicit ``module:QualName`` form."""
    return ":" in name


def load_class(name: str) -> Optional[type]:
    """Import the class a qualified name refers to.

    Returns:
        The class, or None when the module or attribute does not exist or
        does not name a class
    """
    name = name.strip()
    if not name:
        return None

    if is_explicit(name):
        module_name, _, qualname = name.partition(":")
        module = _import(module_name)
        return _class_attribute(module, qualname) if module is not None else None

    parts = name.split(".")
    for i in range(len(parts) - 1, 0, -1):
        module = _import(".".join(parts[:i]))
        if module is not None:
            return _class_attribute(module, ".".join(parts[i:]))
    return None


def class_exists(name: str) -> bool:
    """Whether a name refers to an existing, non built-in class or interface."""
    cls = load_class(name)
    return cls is not None and not is_builtin(cls)


def is_builtin(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith("builtins.")
    return annotation is None or (
        inspect.isclass(annotation) and annotation.__module__ == "builtins"
    )


def is_union(annotation: Any) -> bool:
    return typing.get_origin(annotation) in (typing.Union, types.UnionType)


def expand_class_name(name: str, context: type) -> str:
    """Expand a relative class name against the namespace of ``context``.

    The first segment is looked up among the globals of the module declaring
    ``context`` (its imports and definitions), then among builtins. Names
    that are not found there are taken relative to the module's package.
    """
    name = name.strip()
    if is_explicit(name):
        return name

    head, _, tail = name.partition(".")
    module = sys.modules.get(context.__module__)
    namespace = vars(module) if module is not None else {}

    if head in namespace:
        target = namespace[head]
    elif not tail and hasattr(builtins, head):
        target = getattr(builtins, head)
    else:
        package = _package_of(context)
        return f"{package}.{name}" if package else name

    if inspect.ismodule(target):
        return f"{target.__name__}.{tail}" if tail else target.__name__
    if inspect.isclass(target):
        return f"{class_name(target)}.{tail}" if tail else class_name(target)
    return name


def sibling_class_name(name: str, context: type) -> str:
    """Name ``name`` as a sibling of the module declaring ``context``."""
    package = _package_of(context)
    return f"{package}.{name}" if package else name


def evaluate_annotation(annotation: Any, context: type) -> Any:
    """Evaluate a type annotation in the namespace of ``context``.

    Simple (dotted) string annotations become qualified class names; other
    string annotations are evaluated like ``typing.get_type_hints`` does and
    are returned unchanged when they refer to unknown names.
    """
    if not isinstance(annotation, str):
        return annotation

    source = annotation.strip()
    if _DOTTED_NAME.fullmatch(source) or is_explicit(source):
        return expand_class_name(source, context)

    module = sys.modules.get(context.__module__)
    try:
        return eval(source, dict(vars(module)) if module else {}, dict(vars(context)))
    except NameError:
        return source


def unwrap_optional(annotation: Any) -> Any:
    """Reduce ``Optional[X]`` to ``X``; other annotations are returned as is."""
    if is_union(annotation):
        members = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(members) == 1:
            return members[0]
    return annotation


def annotation_to_string(annotation: Any) -> str:
    if isinstance(annotation, str):
        return annotation
    if annotation is None:
        return "None"
    if inspect.isclass(annotation) and not typing.get_args(annotation):
        return class_name(annotation)
    return repr(annotation).replace("typing.", "")


def get_property_type(prop: DeclaredProperty) -> Optional[str]:
    """Return the qualified name of a property's type annotation, if declared."""
    if not prop.annotated:
        return None
    annotations = inspect.get_annotations(prop.declaring_class)
    if prop.attribute_name not in annotations:
        return None

    annotation = evaluate_annotation(annotations[prop.attribute_name], prop.declaring_class)
    return annotation_to_string(unwrap_optional(annotation))


def get_var_type(prop: DeclaredProperty) -> Optional[str]:
    """Return the qualified name from a property's ``@var`` annotation, if any."""
    value = parse_annotation(prop.doc, "var")
    if value is None:
        return None
    return expand_class_name(value, prop.declaring_class)


def get_return_type(method: Callable[..., Any], owner: type) -> Any:
    """Return the evaluated return annotation of a method.

    Falls back to an ``@return`` annotation in the method's docstring.

    Returns:
        The annotation (a class, typing construct or qualified name), or
        ``EMPTY`` when none is declared
    """
    annotation = inspect.signature(method).return_annotation
    if annotation is EMPTY:
        annotation = parse_annotation(inspect.getdoc(method), "return")
        if annotation is None:
            return EMPTY
    return evaluate_annotation(annotation, owner)


def _package_of(context: type) -> str:
    module = sys.modules.get(context.__module__)
    package = getattr(module, "__package__", None)
    if package is None:
        package = context.__module__.rpartition(".")[0]
    return package


def _import(module_name: str) -> Optional[types.ModuleType]:
    if not module_name or module_name.startswith(".") or not _DOTTED_NAME.fullmatch(module_name):
        return None
    try:
        return importlib.import_module(module_name)
    except ModuleNotFoundError as e:
        # Only a missing module named by us means "not found"
        if e.name and (module_name == e.name or module_name.startswith(e.name + ".")):
            return None
        raise


def _class_attribute(obj: Any, qualname: str) -> Optional[type]:
    for part in qualname.split("."):
        obj = getattr(obj, part, None)
        if obj is None:
            return None
    return obj if inspect.isclass(obj) else None


__all__ = [
    "EMPTY",
    "class_name",
    "class_exists",
    "load_class",
    "is_explicit",
    "is_builtin",
    "is_union",
    "expand_class_name",
    "sibling_class_name",
    "evaluate_annotation",
    "unwrap_optional",
    "annotation_to_string",
    "get_property_type",
    "get_var_type",
    "get_return_type",
]
