"""``flask route-table`` and ``flask resolve`` commands."""
from __future__ import annotations

import click
from flask import Flask
from flask.cli import with_appcontext
from werkzeug.exceptions import MethodNotAllowed, NotFound

from clinic_portal.app.frontend import current_route_table
from clinic_portal.app.routes import Redirect

_HEADERS = ("METHOD", "PATH", "NAME", "VIEW")


def register_commands(app: Flask) -> None:
    """Attach the route table commands to the Flask CLI."""

    app.cli.add_command(route_table_command)
    app.cli.add_command(resolve_command)


@click.command("route-table")
@with_appcontext
def route_table_command() -> None:
    """List every declared route in declaration order."""

    table = current_route_table()
    rows: list[tuple[str, str, str, str]] = []
    for entry in table:
        view = entry.view if entry.view is not None else f"→ {entry.redirect_to}"
        rows.append((", ".join(sorted(entry.methods)), entry.url_pattern, entry.name or "-", view))

    widths = [max(len(header), *(len(row[i]) for row in rows)) for i, header in enumerate(_HEADERS)]
    fmt = "  ".join(f"{{:<{width}}}" for width in widths)
    click.echo(fmt.format(*_HEADERS).rstrip())
    click.echo("-" * min(sum(widths) + 2 * (len(widths) - 1), 100))
    for row in rows:
        click.echo(fmt.format(*row).rstrip())


@click.command("resolve")
@click.argument("path")
@click.option("--method", "-m", default="GET", show_default=True, help="HTTP method to resolve.")
@with_appcontext
def resolve_command(path: str, method: str) -> None:
    """Show which route PATH resolves to."""

    table = current_route_table()
    try:
        instruction = table.resolve(method, path)
    except MethodNotAllowed as exc:
        allowed = ", ".join(sorted(exc.valid_methods or ()))
        raise click.ClickException(
            f"405 Method Not Allowed: {method.upper()} {path} (allowed: {allowed})"
        ) from exc
    except NotFound as exc:
        raise click.ClickException(f"404 Not Found: {method.upper()} {path}") from exc

    if isinstance(instruction, Redirect):
        click.echo(f"redirect: {instruction.target} -> {instruction.location}")
        return

    click.echo(f"name: {instruction.name or '-'}")
    click.echo(f"view: {instruction.view}")
    params = ", ".join(f"{key}={value}" for key, value in sorted(instruction.params.items()))
    click.echo(f"params: {params or '-'}")
