"""Application middleware: role guard and request logging."""
from __future__ import annotations

import logging
import time
from http import HTTPStatus

from flask import Flask, abort, current_app, g, redirect, request, url_for
from flask.typing import ResponseReturnValue
from flask_jwt_extended import get_jwt, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from clinic_portal.app.frontend import current_route_table, login_route
from clinic_portal.app.routes import RouteGroup

LOGGER = logging.getLogger(__name__)

PROTECTED_GROUPS: frozenset[str] = frozenset(
    {RouteGroup.ADMIN.value, RouteGroup.DOCTOR.value, RouteGroup.FRONTDESK.value}
)


def register_role_guard(app: Flask) -> None:
    """Require a token whose ``role`` claim matches the group of a protected route."""

    @app.before_request
    def _enforce_role() -> ResponseReturnValue | None:
        if not current_app.config.get("ROLE_GUARD_ENABLED", True):
            return None

        group = request.blueprint
        if group not in PROTECTED_GROUPS:
            return None

        role = _current_role()
        if role == group:
            return None

        LOGGER.warning(
            "Rejected %s %s: role %r may not access the %s area",
            request.method,
            request.path,
            role,
            group,
        )
        login = login_route(current_route_table())
        if login is None:
            abort(HTTPStatus.UNAUTHORIZED)
        return redirect(url_for(login, next=request.path))


def register_request_logging(app: Flask) -> None:
    """Log method, path, endpoint, status and duration of every request."""

    @app.before_request
    def _start_timer() -> None:
        g.request_started = time.perf_counter()

    @app.after_request
    def _log_request(response):
        started = getattr(g, "request_started", None)
        elapsed_ms = (time.perf_counter() - started) * 1000 if started is not None else 0.0
        LOGGER.info(
            "%s %s -> %s %s (%.1fms)",
            request.method,
            request.path,
            request.endpoint,
            response.status_code,
            elapsed_ms,
        )
        return response


def _current_role() -> str | None:
    try:
        verify_jwt_in_request(optional=True)
    except (JWTExtendedException, PyJWTError) as exc:
        LOGGER.warning("Ignoring unusable access token: %s", exc)
        return None

    role = get_jwt().get("role")
    return role if isinstance(role, str) else None
