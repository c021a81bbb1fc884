"""
FastAPI Integration
===================

Builds one injected presenter per request and renders autowiring errors as
JSON responses.

Usage:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/articles")
    def list_articles(
        presenter: ArticlePresenter = Depends(presenter_dependency(ArticlePresenter, container)),
    ):
        return presenter.run("list")
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Type, TypeVar

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..di import Container, get_container
from ..exceptions import AutowiredError, ErrorCode
from .factory import PresenterFactory
from .ui import Presenter

logger = structlog.get_logger(__name__)

P = TypeVar("P", bound=Presenter)


class ErrorResponse(BaseModel):
    """Autowiring error response model."""

    code: ErrorCode = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Additional error details",
    )
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def presenter_dependency(
    presenter_class: Type[P],
    container: Optional[Container] = None,
) -> Callable[[], P]:
    """Create a FastAPI dependency providing an injected presenter.

    Args:
        presenter_class: Presenter to instantiate for each request
        container: Container to inject from, defaults to the global one

    Returns:
        Dependency callable for ``Depends``
    """

    def dependency() -> P:
        factory = PresenterFactory(container or get_container())
        return factory.create_presenter(presenter_class)

    dependency.__name__ = f"get_{presenter_class.__name__}"
    return dependency


async def autowired_exception_handler(request: Request, exc: AutowiredError) -> JSONResponse:
    """Handle autowiring errors."""
    logger.error(
        "autowiring_failed",
        path=request.url.path,
        code=exc.code.value,
        error=exc.message,
    )
    error = ErrorResponse(code=exc.code, message=exc.message, details=exc.details or None)
    return JSONResponse(status_code=500, content=error.model_dump(mode="json"))


def register_exception_handlers(app: FastAPI) -> FastAPI:
    """Install the autowiring error handlers on an application."""
    app.add_exception_handler(AutowiredError, autowired_exception_handler)
    return app


__all__ = [
    "ErrorResponse",
    "presenter_dependency",
    "autowired_exception_handler",
    "register_exception_handlers",
]
