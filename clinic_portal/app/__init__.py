"""Application factory for the clinic portal."""
from __future__ import annotations

from flask import Flask

from clinic_portal.app.cli import register_commands
from clinic_portal.app.errors import register_error_handlers
from clinic_portal.app.frontend import register_frontend
from clinic_portal.app.middleware import register_request_logging, register_role_guard
from clinic_portal.app.routes import ROUTE_TABLE, RouteTable
from clinic_portal.config import get_config
from clinic_portal.extensions import cors, jwt


def create_app(config_name: str | None = None, route_table: RouteTable | None = None) -> Flask:
    """Create and configure the Flask application.

    ``route_table`` defaults to the declared portal routes. It is built once per
    process and only read afterwards.
    """

    app = Flask(__name__)
    config_cls = get_config(config_name or app.config.get("ENV"))
    app.config.from_object(config_cls)
    app.logger.setLevel(app.config["LOG_LEVEL"])

    register_extensions(app)
    register_request_logging(app)
    register_role_guard(app)
    register_frontend(app, route_table or ROUTE_TABLE)
    register_error_handlers(app)
    register_commands(app)

    return app


def register_extensions(app: Flask) -> None:
    """Initialize Flask extensions."""

    jwt.init_app(app)
    cors.init_app(app, origins=app.config["CORS_ORIGINS"])
