"""Route table for the clinic portal.

The table is declared once, below, as a tuple of :class:`RouteEntry` values
grouped by role prefix. :class:`RouteTable` compiles the declaration into a
Werkzeug URL map and answers two questions about it:

* :meth:`RouteTable.resolve` turns ``(method, path)`` into an instruction,
  either :class:`RenderView` or :class:`Redirect`, or raises the Werkzeug
  ``NotFound`` / ``MethodNotAllowed`` exceptions Flask itself uses.
* :meth:`RouteTable.url_for` builds the path of a named route.

Resolution is a pure lookup and the table is never mutated after it is built,
so a single instance can be shared by every request worker.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator

from werkzeug.exceptions import MethodNotAllowed, NotFound
from werkzeug.routing import BuildError, Map, Rule

LOGGER = logging.getLogger(__name__)

__all__ = [
    "BuildError",
    "Instruction",
    "MethodNotAllowed",
    "NotFound",
    "ROUTES",
    "ROUTE_TABLE",
    "Redirect",
    "RenderView",
    "RouteEntry",
    "RouteGroup",
    "RouteTable",
    "RouteTableError",
    "template_name",
]

_PARAM_PATTERN = re.compile(r"\{(\w+)\}")


class RouteTableError(ValueError):
    """Raised when a route declaration breaks a table invariant."""


class RouteGroup(str, Enum):
    """Role-based prefix groups. ``NONE`` holds the top-level routes."""

    NONE = "none"
    BOOKING = "booking"
    ADMIN = "admin"
    DOCTOR = "doctor"
    FRONTDESK = "frontdesk"

    @property
    def prefix(self) -> str:
        if self is RouteGroup.NONE:
            return ""
        return f"/{self.value}"


@dataclass(frozen=True, slots=True)
class RouteEntry:
    """A single declared route.

    ``path`` is relative to the group prefix and may contain ``{param}``
    placeholders. An entry either renders ``view`` or redirects to the route
    named ``redirect_to``, never both.
    """

    path: str
    name: str | None
    view: str | None = None
    group: RouteGroup = RouteGroup.NONE
    redirect_to: str | None = None
    methods: frozenset[str] = frozenset({"GET"})

    def __post_init__(self) -> None:
        if not self.path.startswith("/"):
            raise RouteTableError(f"Route path {self.path!r} must start with '/'.")
        if self.path == "/" and self.group is not RouteGroup.NONE:
            raise RouteTableError(
                f"Route in group {self.group.value!r} needs a path below the {self.group.prefix!r} prefix."
            )
        if (self.view is None) == (self.redirect_to is None):
            raise RouteTableError(
                f"Route {self.url_pattern!r} must declare exactly one of view or redirect_to."
            )

    @property
    def url_pattern(self) -> str:
        """Full path pattern including the group prefix, e.g. ``/doctor/appointments/{id}``."""

        return self.group.prefix + self.path

    @property
    def rule(self) -> str:
        """The pattern in Werkzeug rule syntax (``{id}`` becomes ``<id>``)."""

        return _PARAM_PATTERN.sub(r"<\1>", self.url_pattern)

    @property
    def relative_rule(self) -> str:
        """Like :attr:`rule` but without the group prefix, for blueprint registration."""

        return _PARAM_PATTERN.sub(r"<\1>", self.path)

    @property
    def parameters(self) -> tuple[str, ...]:
        return tuple(_PARAM_PATTERN.findall(self.path))

    @property
    def is_redirect(self) -> bool:
        return self.redirect_to is not None


@dataclass(frozen=True, slots=True)
class RenderView:
    """Instruction to render ``view`` for the route called ``name``."""

    name: str | None
    view: str
    params: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Redirect:
    """Instruction to redirect to the route called ``target``."""

    target: str
    location: str


Instruction = RenderView | Redirect


def _grouped(group: RouteGroup, *routes: tuple[str, str, str]) -> tuple[RouteEntry, ...]:
    return tuple(
        RouteEntry(path=path, name=f"{group.value}.{name}", view=view, group=group)
        for path, name, view in routes
    )


ROUTES: tuple[RouteEntry, ...] = (
    # Authentication
    RouteEntry(path="/", name=None, redirect_to="login"),
    RouteEntry(path="/login", name="login", view="auth.login"),
    # Public booking, no authentication required
    *_grouped(
        RouteGroup.BOOKING,
        ("/step-1", "step1", "public.booking-step1"),
        ("/step-2", "step2", "public.booking-step2"),
        ("/step-3", "step3", "public.booking-step3"),
        ("/step-4", "step4", "public.booking-step4"),
    ),
    *_grouped(
        RouteGroup.ADMIN,
        ("/dashboard", "dashboard", "admin.dashboard"),
        ("/appointments", "appointments", "admin.appointments"),
        ("/appointments/add", "add-appointment", "admin.add-appointment"),
        ("/doctors", "doctors", "admin.doctors"),
        ("/doctors/add", "doctor-add", "admin.doctor-add"),
        ("/patients", "patients", "admin.patients"),
        ("/calendar", "calendar", "admin.calendar"),
    ),
    *_grouped(
        RouteGroup.DOCTOR,
        ("/dashboard", "dashboard", "doctor.dashboard"),
        ("/appointments", "appointments", "doctor.appointments"),
        ("/appointments/{id}", "appointment-details", "doctor.appointment-details"),
        ("/calendar", "calendar", "doctor.calendar"),
    ),
    *_grouped(
        RouteGroup.FRONTDESK,
        ("/dashboard", "dashboard", "frontdesk.dashboard"),
        ("/add-appointment", "add-appointment", "frontdesk.add-appointment"),
        ("/doctor-schedule", "doctor-schedule", "frontdesk.doctor-schedule"),
        ("/patients", "patients", "frontdesk.patients"),
        ("/history", "history", "frontdesk.history"),
    ),
)


class RouteTable:
    """Immutable, compiled view over a sequence of route entries."""

    __slots__ = ("_adapter", "_by_endpoint", "_by_name", "_entries")

    def __init__(self, entries: Iterable[RouteEntry]) -> None:
        self._entries: tuple[RouteEntry, ...] = tuple(entries)
        self._by_name = _index_by_name(self._entries)
        _check_paths(self._entries)
        _check_redirects(self._entries, self._by_name)

        # Unnamed entries are keyed by their pattern, which never collides with a dotted name.
        self._by_endpoint = {_endpoint(entry): entry for entry in self._entries}
        url_map = Map(
            [
                Rule(entry.rule, endpoint=endpoint, methods=sorted(entry.methods))
                for endpoint, entry in self._by_endpoint.items()
            ],
            strict_slashes=True,
            merge_slashes=False,
        )
        self._adapter = url_map.bind("localhost")
        LOGGER.debug("Compiled route table with %d entries", len(self._entries))

    def __iter__(self) -> Iterator[RouteEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[RouteEntry, ...]:
        return self._entries

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._by_name)

    def get(self, name: str) -> RouteEntry:
        """Return the entry called ``name`` or raise ``KeyError``."""

        return self._by_name[name]

    def groups(self) -> tuple[RouteGroup, ...]:
        """Groups in the order they first appear in the declaration."""

        return tuple(dict.fromkeys(entry.group for entry in self._entries))

    def entries_in(self, group: RouteGroup | str) -> tuple[RouteEntry, ...]:
        group = RouteGroup(group)
        return tuple(entry for entry in self._entries if entry.group is group)

    def resolve(self, method: str, path: str) -> Instruction:
        """Resolve a request to the instruction its route produces.

        Raises ``NotFound`` when no entry matches ``path`` and
        ``MethodNotAllowed`` when one does but not for ``method``.
        """

        endpoint, params = self._adapter.match(path, method=method.upper())
        return self.instruction(self._by_endpoint[endpoint], params)

    def instruction(self, entry: RouteEntry, params: dict[str, str] | None = None) -> Instruction:
        """Build the instruction for an already matched ``entry``."""

        if entry.redirect_to is not None:
            return Redirect(target=entry.redirect_to, location=self.url_for(entry.redirect_to))
        if entry.view is None:
            raise RouteTableError(f"Route {entry.url_pattern!r} has neither a view nor a redirect.")
        return RenderView(name=entry.name, view=entry.view, params=dict(params or {}))

    def url_for(self, name: str, **params: str) -> str:
        """Build the path of the route called ``name``."""

        if name not in self._by_name:
            raise BuildError(name, params, None, adapter=self._adapter)
        return self._adapter.build(name, params)


def _endpoint(entry: RouteEntry) -> str:
    return entry.name if entry.name is not None else entry.url_pattern


def _index_by_name(entries: tuple[RouteEntry, ...]) -> dict[str, RouteEntry]:
    by_name: dict[str, RouteEntry] = {}
    for entry in entries:
        if entry.name is None:
            continue
        if entry.name in by_name:
            raise RouteTableError(f"Duplicate route name {entry.name!r}.")
        by_name[entry.name] = entry
    return by_name


def _check_paths(entries: tuple[RouteEntry, ...]) -> None:
    seen: set[tuple[RouteGroup, str]] = set()
    for entry in entries:
        key = (entry.group, entry.path)
        if key in seen:
            raise RouteTableError(
                f"Duplicate path {entry.path!r} in group {entry.group.value!r}."
            )
        seen.add(key)


def _check_redirects(entries: tuple[RouteEntry, ...], by_name: dict[str, RouteEntry]) -> None:
    for entry in entries:
        if entry.redirect_to is not None and entry.redirect_to not in by_name:
            raise RouteTableError(
                f"Route {entry.url_pattern!r} redirects to unknown route {entry.redirect_to!r}."
            )


def template_name(view: str) -> str:
    """Map a view identifier to its template path.

    ``"admin.add-appointment"`` becomes ``"admin/add-appointment.html"``.
    """

    namespace, _, page = view.partition(".")
    if not page:
        return f"{namespace}.html"
    return f"{namespace}/{page}.html"


ROUTE_TABLE = RouteTable(ROUTES)
