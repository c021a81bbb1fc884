"""
Class member reflection.

Python keeps no runtime record of attribute docstrings, so declared
properties are read from the class source: every class-body assignment
(``name: Type``, ``name: Type = value`` or ``name = value``) is a property,
and a string literal directly following it is its doc comment.
"""

from __future__ import annotations

import ast
import inspect
import textwrap
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DeclaredProperty:
    """A property declared in a class body."""

    name: str
    declaring_class: type
    doc: str = ""
    annotated: bool = False
    lineno: int = 0

    @property
    def is_private(self) -> bool:
        """Name-mangled attributes are private to their declaring class."""
        return self.name.startswith("__") and not self.name.endswith("__")

    @property
    def attribute_name(self) -> str:
        """Name under which the attribute is stored on the class."""
        if self.is_private:
            return f"_{self.declaring_class.__name__.lstrip('_')}{self.name}"
        return self.name

    def __str__(self) -> str:
        return property_to_string(self)


def class_to_string(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def property_to_string(prop: DeclaredProperty) -> str:
    return f"{class_to_string(prop.declaring_class)}.{prop.name}"


def method_to_string(owner: type, method: Callable[..., Any]) -> str:
    return f"{class_to_string(owner)}.{method.__name__}()"


def class_properties(cls: type) -> List[DeclaredProperty]:
    """List the properties declared directly in the body of ``cls``."""
    try:
        source = inspect.getsource(cls)
    except (OSError, TypeError):
        # Classes created at runtime or without source files
        logger.debug("class_source_unavailable", cls=class_to_string(cls))
        return []

    tree = ast.parse(textwrap.dedent(source))
    class_def = next(
        (node for node in tree.body if isinstance(node, ast.ClassDef)),
        None,
    )
    if class_def is None:
        return []

    properties = []
    body = class_def.body
    for index, statement in enumerate(body):
        if isinstance(statement, ast.AnnAssign) and isinstance(statement.target, ast.Name):
            name, annotated = statement.target.id, True
        elif (
            isinstance(statement, ast.Assign)
            and len(statement.targets) == 1
            and isinstance(statement.targets[0], ast.Name)
        ):
            name, annotated = statement.targets[0].id, False
        else:
            continue

        doc = ""
        following = body[index + 1] if index + 1 < len(body) else None
        if (
            isinstance(following, ast.Expr)
            and isinstance(following.value, ast.Constant)
            and isinstance(following.value.value, str)
        ):
            doc = inspect.cleandoc(following.value.value)

        properties.append(
            DeclaredProperty(
                name=name,
                declaring_class=cls,
                doc=doc,
                annotated=annotated,
                lineno=statement.lineno,
            )
        )

    return properties


def declared_properties(cls: type, ignore: Iterable[type] = ()) -> List[DeclaredProperty]:
    """List properties declared along the MRO of ``cls``.

    A property redeclared by a subclass shadows the parent's declaration.
    Classes in ``ignore`` are skipped.
    """
    ignored: Set[type] = set(ignore)
    seen: Dict[str, DeclaredProperty] = {}
    for klass in cls.__mro__:
        if klass in ignored or klass is object:
            continue
        for prop in class_properties(klass):
            seen.setdefault(prop.attribute_name, prop)
    return list(seen.values())


def source_file(cls: type) -> Optional[str]:
    """Return the source file defining a class, if it has one."""
    try:
        return inspect.getsourcefile(cls)
    except TypeError:
        # Built-in classes
        return None


__all__ = [
    "DeclaredProperty",
    "class_properties",
    "declared_properties",
    "class_to_string",
    "property_to_string",
    "method_to_string",
    "source_file",
]
