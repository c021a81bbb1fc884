"""
UI component base classes.

Presenters handle one request each; controls are reusable components
attached to a presenter. Reading an undeclared attribute of a component is
an error rather than a silent ``AttributeError`` from deep inside a template
or handler.
"""

from __future__ import annotations

from typing import Any, Optional

from ..exceptions import MemberAccessError


class Component:
    """Base class of all UI components."""

    def __init__(self, name: Optional[str] = None, parent: Optional["Component"] = None):
        self.name = name
        self.parent = parent

    def __getattr__(self, name: str) -> Any:
        # Only called when regular lookup failed
        if name.startswith("__") and name.endswith("__"):
            raise AttributeError(name)
        raise MemberAccessError(
            f"Cannot read an undeclared property {type(self).__module__}."
            f"{type(self).__qualname__}.{name}."
        )


class Control(Component):
    """Reusable component rendered inside a presenter."""


class Presenter(Control):
    """Request handling unit.

    Actions are methods named ``action_<name>``; ``run`` calls ``startup``
    and then the requested action.
    """

    def startup(self) -> None:
        """Hook called before the action."""

    def run(self, action: str = "default", **params: Any) -> Any:
        handler = getattr(type(self), f"action_{action}", None)
        if handler is None:
            raise MemberAccessError(
                f"Action '{action}' is not defined in {type(self).__qualname__}."
            )
        self.startup()
        return handler(self, **params)


__all__ = ["Component", "Control", "Presenter"]
