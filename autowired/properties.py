"""
Autowired Properties
====================

Lets presenters and components declare services as annotated attributes and
have the container provide them lazily, on first access:

    class ArticlePresenter(AutowireProperties, Presenter):

        articles: ArticleRepository
        '''@autowire'''

        exporter: ArticleExporter
        '''@autowire("csv", factory=ArticleExporterFactory)'''

    presenter = ArticlePresenter()
    presenter.inject_properties(container)
    presenter.articles  # container.get_by_type(ArticleRepository)

Resolved metadata is cached per presenter class and container, and is
invalidated when the source of the presenter, its parents or the container
changes.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

import structlog

from .application.ui import Component, Presenter
from .caching import Cache, CacheStorage
from .config import get_settings
from .di import Container, ServiceNotFoundError
from .exceptions import (
    InvalidStateError,
    MemberAccessError,
    MissingClassError,
    MissingServiceError,
    UnexpectedValueError,
)
from .reflection import (
    EMPTY,
    DeclaredProperty,
    annotation_names,
    annotation_to_string,
    class_exists,
    class_name,
    declared_properties,
    expand_class_name,
    get_property_type,
    get_return_type,
    get_var_type,
    is_builtin,
    is_explicit,
    is_union,
    load_class,
    method_to_string,
    parse_doc_comment,
    sibling_class_name,
    source_file,
)

logger = structlog.get_logger(__name__)

ANNOTATION = "autowire"
FACTORY_METHOD = "create"


@dataclass(frozen=True)
class PropertyMetadata:
    """Resolved declaration of one autowired property."""

    type: str
    factory: Optional[str] = None
    arguments: Tuple[Any, ...] = ()
    keyword_arguments: Tuple[Tuple[str, Any], ...] = ()

    def __post_init__(self):
        # Mappings are stored as (name, value) pairs
        if isinstance(self.keyword_arguments, Mapping):
            object.__setattr__(self, "keyword_arguments", tuple(self.keyword_arguments.items()))


ClassMetadataTable = Dict[str, PropertyMetadata]


class AutowireProperties:
    """Mixin for ``Component`` subclasses providing autowired properties.

    ``inject_properties`` must be called once, before any autowired property
    is touched; ``PresenterFactory`` does that for presenters it creates.
    """

    _autowire_properties_meta: Mapping[str, PropertyMetadata] = MappingProxyType({})
    _autowire_properties_locator: Optional[Container] = None

    def inject_properties(self, container: Container) -> None:
        """Resolve (or load from cache) the autowired properties of this object.

        Raises:
            MemberAccessError: If used outside a component, or a property
                is private
            MissingServiceError: If a required service is not registered
            InvalidStateError: If a property has no usable type declaration
            MissingClassError: If a referenced class does not exist
            UnexpectedValueError: If an annotation is misspelled or a factory
                creates another type than required
        """
        if not isinstance(self, Component):
            raise MemberAccessError(
                f"{AutowireProperties.__name__} can be used only in descendants "
                f"of {class_name(Component)}."
            )

        object.__setattr__(self, "_autowire_properties_locator", container)
        object.__setattr__(self, "_autowire_properties", {})

        settings = get_settings()
        if container.has_service(settings.cache_storage_service):
            storage = container.get_service(settings.cache_storage_service)
        else:
            storage = container.get_by_type(CacheStorage)
        cache = Cache(storage, settings.cache_namespace)

        container_file = source_file(type(container))
        presenter_class = type(self)
        cache_key = [class_name(presenter_class), container_file]

        metadata = cache.load(cache_key)
        if isinstance(metadata, dict):
            for name in metadata:
                vars(self).pop(name, None)
            object.__setattr__(self, "_autowire_properties_meta", MappingProxyType(metadata))
            logger.debug(
                "autowire_metadata_cache_hit",
                presenter=cache_key[0],
                properties=list(metadata),
            )
            return

        ignore = _ignored_classes()
        metadata = {}
        for prop in declared_properties(presenter_class, ignore):
            if not self._validate_property(prop, ignore):
                continue
            metadata[prop.name] = self._resolve_property(prop)

        object.__setattr__(self, "_autowire_properties_meta", MappingProxyType(metadata))

        files = [
            source_file(cls)
            for cls in presenter_class.__mro__
            if cls not in ignore and cls is not object
        ]
        files.append(container_file)
        cache.save(
            cache_key,
            metadata,
            dependencies={Cache.FILES: list(dict.fromkeys(f for f in files if f))},
        )
        logger.debug(
            "autowire_metadata_resolved",
            presenter=cache_key[0],
            properties=list(metadata),
        )

    # -------------------------------------------------------------------------
    # Metadata resolution
    # -------------------------------------------------------------------------

    def _validate_property(self, prop: DeclaredProperty, ignore: FrozenSet[type]) -> bool:
        if prop.declaring_class in ignore:
            return False

        for name in annotation_names(prop.doc):
            if name.lower() not in ("autowire", "autowired"):
                continue

            if name != ANNOTATION:
                raise UnexpectedValueError(
                    f"Annotation @{name} on {prop} should be fixed to lowercase @{ANNOTATION}.",
                    prop,
                )

            if prop.is_private:
                raise MemberAccessError(
                    "Autowired properties must be protected or public. Please fix "
                    f"visibility of {prop} or remove the @{ANNOTATION} annotation.",
                    prop,
                )

            return True

        return False

    def _assert_type_is_autowirable(self, type_name: str, subject: str, prop: DeclaredProperty) -> None:
        try:
            self._autowire_properties_locator.get_by_type(load_class(type_name), throw=True)
        except ServiceNotFoundError as e:
            raise MissingServiceError(
                f"Unable to autowire {subject} for {prop}: {e}", prop
            ) from e

    def _resolve_property(self, prop: DeclaredProperty) -> PropertyMetadata:
        type_name = self._resolve_property_type(prop)

        annotations = parse_doc_comment(prop.doc, names=(ANNOTATION,))
        args = dict(annotations[ANNOTATION][-1])

        if "factory" in args:
            factory_type = self._resolve_factory_type(prop, args.pop("factory"), ANNOTATION)
            self._assert_type_is_autowirable(factory_type, "service factory", prop)

            creates_type = self._resolve_return_type(load_class(factory_type), prop)
            if creates_type != type_name:
                raise UnexpectedValueError(
                    f"The property {prop} requires {type_name}, but factory of type "
                    f"{factory_type}, that creates {creates_type} was provided.",
                    prop,
                )

            metadata = PropertyMetadata(
                type=type_name,
                factory=factory_type,
                arguments=tuple(args[k] for k in sorted(k for k in args if isinstance(k, int))),
                keyword_arguments=tuple((k, v) for k, v in args.items() if isinstance(k, str)),
            )
        else:
            self._assert_type_is_autowirable(type_name, "service", prop)
            metadata = PropertyMetadata(type=type_name)

        # Drop the instance value so access goes through __getattribute__/__setattr__
        vars(self).pop(prop.name, None)
        return metadata

    def _resolve_property_type(self, prop: DeclaredProperty) -> str:
        type_name = get_property_type(prop) or get_var_type(prop)
        if type_name is None:
            raise InvalidStateError(
                f"Missing property type hint or annotation @var on {prop}.", prop
            )

        if not class_exists(type_name):
            raise MissingClassError(
                f'Class "{type_name}" not found, please check the type hint on {prop}.',
                prop,
            )

        return class_name(load_class(type_name))

    def _resolve_return_type(self, factory: type, prop: DeclaredProperty) -> str:
        owner = next((cls for cls in factory.__mro__ if FACTORY_METHOD in vars(cls)), None)
        method = getattr(factory, FACTORY_METHOD, None)
        if owner is None or not callable(method):
            raise InvalidStateError(
                f"Factory {class_name(factory)} used by {prop} has no method {FACTORY_METHOD}().",
                prop,
            )

        method_name = method_to_string(owner, method)
        annotation = get_return_type(method, owner)
        if annotation is EMPTY:
            raise MissingClassError(f"Missing return type hint on {method_name}.", method_name)
        if (
            is_union(annotation)
            or is_builtin(annotation)
            or not (isinstance(annotation, str) or inspect.isclass(annotation))
        ):
            raise MissingClassError(
                f"Return type of {method_name} is not expected to be nullable/union/built-in, "
                f'"{annotation_to_string(annotation)}" given.',
                method_name,
            )

        type_name = annotation if isinstance(annotation, str) else class_name(annotation)
        if not class_exists(type_name):
            raise MissingClassError(
                f'Class "{type_name}" not found, please check the type hint on {method_name}.',
                method_name,
            )
        return class_name(load_class(type_name))

    def _resolve_factory_type(self, prop: DeclaredProperty, annotation_value: Any, annotation_name: str) -> str:
        raw = "" if annotation_value is None else str(annotation_value)
        type_name = raw.strip()
        if not type_name:
            raise InvalidStateError(
                f"Missing annotation @{annotation_name} with type hint on {prop}.", prop
            )

        if not class_exists(type_name):
            if is_explicit(type_name):
                raise MissingClassError(
                    f'Class "{type_name}" was not found, please check the type hint on '
                    f"{prop} in annotation @{annotation_name}.",
                    prop,
                )

            expanded = expand_class_name(type_name, prop.declaring_class)
            if class_exists(expanded):
                type_name = expanded
            else:
                type_name = sibling_class_name(raw.strip(), prop.declaring_class)
                if not class_exists(type_name):
                    raise MissingClassError(
                        f'Neither class "{raw}" or "{type_name}" was found, please check '
                        f"the type hint on {prop} in annotation @{annotation_name}.",
                        prop,
                    )

        return class_name(load_class(type_name))

    # -------------------------------------------------------------------------
    # Property access
    # -------------------------------------------------------------------------

    def __setattr__(self, name: str, value: Any) -> None:
        meta = object.__getattribute__(self, "_autowire_properties_meta")
        if name not in meta:
            super().__setattr__(name, value)
            return

        resolved = object.__getattribute__(self, "_autowire_properties")
        if name in resolved:
            raise MemberAccessError(
                f"Property {class_name(type(self))}.{name} has already been set."
            )

        expected = load_class(meta[name].type)
        if expected is None or not isinstance(value, expected):
            raise MemberAccessError(
                f"Property {class_name(type(self))}.{name} must be an instance of {meta[name].type}."
            )

        resolved[name] = value

    def __getattribute__(self, name: str) -> Any:
        meta = object.__getattribute__(self, "_autowire_properties_meta")
        if name not in meta:
            return super().__getattribute__(name)

        resolved = object.__getattribute__(self, "_autowire_properties")
        if name not in resolved:
            resolved[name] = self._create_autowired_property_service(name)
        return resolved[name]

    def _create_autowired_property_service(self, name: str) -> Any:
        metadata = self._autowire_properties_meta[name]
        locator = self._autowire_properties_locator
        if metadata.factory is not None:
            factory = locator.get_by_type(load_class(metadata.factory))
            return getattr(factory, FACTORY_METHOD)(*metadata.arguments, **dict(metadata.keyword_arguments))

        return locator.get_by_type(load_class(metadata.type))


def _ignored_classes() -> FrozenSet[type]:
    """Framework classes whose declarations are never autowired."""
    return frozenset(Presenter.__mro__) | {AutowireProperties}


__all__ = ["AutowireProperties", "PropertyMetadata", "ClassMetadataTable"]
