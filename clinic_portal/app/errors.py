"""HTML error pages for failed route resolution."""
from __future__ import annotations

import logging
from http import HTTPStatus

from flask import Flask, render_template, request
from flask.typing import ResponseReturnValue
from werkzeug.exceptions import MethodNotAllowed, NotFound

LOGGER = logging.getLogger(__name__)


def register_error_handlers(app: Flask) -> None:
    """Render ``NotFound`` and ``MethodNotAllowed`` with the portal layout."""

    app.register_error_handler(NotFound, _not_found)
    app.register_error_handler(MethodNotAllowed, _method_not_allowed)


def _not_found(error: NotFound) -> ResponseReturnValue:
    LOGGER.info("No route matches %s %s", request.method, request.path)
    return render_template("errors/404.html", path=request.path), HTTPStatus.NOT_FOUND


def _method_not_allowed(error: MethodNotAllowed) -> ResponseReturnValue:
    allowed = sorted(error.valid_methods or ())
    LOGGER.info(
        "Method %s not allowed for %s (allowed: %s)",
        request.method,
        request.path,
        ", ".join(allowed),
    )
    body = render_template(
        "errors/405.html", path=request.path, method=request.method, allowed=allowed
    )
    return body, HTTPStatus.METHOD_NOT_ALLOWED, {"Allow": ", ".join(allowed)}
