"""Presenter construction."""

from __future__ import annotations

from typing import Type, TypeVar

import structlog

from ..di import Container
from .ui import Presenter

logger = structlog.get_logger(__name__)

P = TypeVar("P", bound=Presenter)


class PresenterFactory:
    """Creates presenters and injects their autowired properties.

    Every call returns a fresh presenter, so per-request state (including
    resolved autowired services) is never shared between requests.
    """

    def __init__(self, container: Container):
        self.container = container

    def create_presenter(self, presenter_class: Type[P]) -> P:
        presenter = presenter_class()
        inject = getattr(type(presenter), "inject_properties", None)
        if inject is not None:
            inject(presenter, self.container)
        logger.debug("presenter_created", presenter=presenter_class.__qualname__)
        return presenter


__all__ = ["PresenterFactory"]
