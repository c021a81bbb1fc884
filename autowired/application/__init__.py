"""
Application Module
==================

UI component base classes, presenter construction and web integration.
"""

from .factory import PresenterFactory
from .ui import Component, Control, Presenter
from .web import (
    ErrorResponse,
    autowired_exception_handler,
    presenter_dependency,
    register_exception_handlers,
)

__all__ = [
    "Component",
    "Control",
    "Presenter",
    "PresenterFactory",
    "ErrorResponse",
    "autowired_exception_handler",
    "presenter_dependency",
    "register_exception_handlers",
]
