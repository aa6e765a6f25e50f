"""Flask binding for the route table.

Ungrouped entries are registered on the application, every prefix group
becomes a blueprint of the same name, so Flask endpoint names line up with
route names (``login``, ``admin.dashboard``, ...).
"""
from __future__ import annotations

import logging
import re
from typing import Any, Callable

from flask import Blueprint, Flask, current_app, redirect, render_template, request, url_for
from flask.typing import ResponseReturnValue

from clinic_portal.app.routes import (
    Instruction,
    Redirect,
    RenderView,
    RouteEntry,
    RouteGroup,
    RouteTable,
    template_name,
)

LOGGER = logging.getLogger(__name__)

INDEX_ENDPOINT = "index"
_SLUG_PATTERN = re.compile(r"\W+")


def register_frontend(app: Flask, table: RouteTable) -> None:
    """Register every entry of ``table`` as a URL rule on ``app``."""

    app.extensions["route_table"] = table

    for group in table.groups():
        entries = table.entries_in(group)
        if group is RouteGroup.NONE:
            for entry in entries:
                _add_rule(app, table, entry, _endpoint_for(entry))
            continue

        blueprint = Blueprint(group.value, __name__, url_prefix=group.prefix)
        for entry in entries:
            _add_rule(blueprint, table, entry, _endpoint_for(entry))
        app.register_blueprint(blueprint)

    app.context_processor(_inject_navigation)
    LOGGER.debug("Registered %d routes across %d groups", len(table), len(table.groups()))


def current_route_table() -> RouteTable:
    return current_app.extensions["route_table"]


def login_route(table: RouteTable) -> str | None:
    """Name of the sign-in route, or ``None`` when the table does not declare it."""

    name = current_app.config.get("LOGIN_ROUTE", "login")
    return name if name in table.names else None


def respond(instruction: Instruction) -> ResponseReturnValue:
    """Carry out an instruction produced by the route table."""

    if isinstance(instruction, Redirect):
        # Rebuilt through Flask so the location carries the request's SCRIPT_NAME.
        return redirect(url_for(instruction.target))
    if isinstance(instruction, RenderView):
        return render_template(
            template_name(instruction.view),
            route_name=instruction.name,
            view=instruction.view,
            params=instruction.params,
        )
    raise TypeError(f"Unsupported route instruction: {instruction!r}")


def _endpoint_for(entry: RouteEntry) -> str:
    if entry.name is None:
        slug = _SLUG_PATTERN.sub("_", entry.path).strip("_")
        return f"{INDEX_ENDPOINT}_{slug}" if slug else INDEX_ENDPOINT
    if entry.group is RouteGroup.NONE:
        return entry.name
    # Blueprint endpoints are namespaced by the blueprint name already.
    return entry.name.removeprefix(f"{entry.group.value}.")


def _add_rule(
    target: Flask | Blueprint, table: RouteTable, entry: RouteEntry, endpoint: str
) -> None:
    target.add_url_rule(
        entry.relative_rule,
        endpoint=endpoint,
        view_func=_make_view(table, entry),
        methods=sorted(entry.methods),
    )


def _make_view(table: RouteTable, entry: RouteEntry) -> Callable[..., ResponseReturnValue]:
    def view(**params: Any) -> ResponseReturnValue:
        return respond(table.instruction(entry, params))

    return view


def _inject_navigation() -> dict[str, Any]:
    table = current_route_table()
    group = request.blueprint or RouteGroup.NONE.value
    navigation = [
        entry for entry in table.entries_in(group) if not entry.is_redirect and not entry.parameters
    ]
    return {
        "route_table": table,
        "current_group": group,
        "navigation": navigation,
        "login_route": login_route(table),
    }
