"""Perch exception hierarchy.

Shared across the route compiler, the route collection, the dispatch loop
and the HTTP collaborators so every module raises and catches the same
types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from http import HTTPStatus
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from perch.routing.route import Route


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when a route or router is registered with invalid arguments."""


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """An error that maps directly to an HTTP status code.

    Raised by the dispatch loop (404/405) or by handlers through
    ``router.abort(code)``. The router catches these and runs the
    registered HTTP error callbacks.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)

    @classmethod
    def from_code(cls, code: int) -> HTTPError:
        """Build the most specific error for *code*."""
        if code == 404:
            return NotFound()
        try:
            detail = HTTPStatus(code).phrase
        except ValueError:
            detail = ""
        return cls(status=code, detail=detail)


class NotFound(HTTPError):  # noqa: N818
    """404 — no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405 — a route matched the path but not the request method.

    Carries an ``Allow`` header listing the matched methods in the order
    the routes declared them.
    """

    def __init__(self, allowed: tuple[str, ...], detail: str = "") -> None:
        allow_value = ", ".join(allowed)
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )

    @property
    def allowed(self) -> tuple[str, ...]:
        """The methods listed in the ``Allow`` header."""
        value = dict(self.headers).get("Allow", "")
        return tuple(m for m in value.split(", ") if m)


class PatternCompilationError(PerchError):
    """A route path could not be turned into a working regular expression.

    Carries the original pattern, the regex engine's diagnostic, and (once
    raised from the dispatch loop) the route that owns the pattern.
    """

    def __init__(self, pattern: str, diagnostic: str, route: Route | None = None) -> None:
        self.pattern = pattern
        self.diagnostic = diagnostic
        self.route = route
        path = route.path if route is not None else pattern
        super().__init__(
            f'Route failed to compile with path "{path}". '
            f'Failed with message: "{diagnostic}"'
        )

    def for_route(self, route: Route) -> PatternCompilationError:
        """Return a copy of this error bound to *route*."""
        return PatternCompilationError(self.pattern, self.diagnostic, route)


class RouteNotFound(PerchError, LookupError):  # noqa: N818
    """No route carries the requested name (reverse path resolution)."""


class HaltKind(IntEnum):
    """Discriminator carried by :class:`DispatchHalted`."""

    SKIP_REMAINING = 0
    SKIP_THIS = 1
    SKIP_NEXT = 2


class DispatchHalted(PerchError):  # noqa: N818
    """Raised by a route callback to steer the dispatch loop.

    ``SKIP_THIS`` abandons the current route, ``SKIP_NEXT`` bypasses the
    next *skips* routes, ``SKIP_REMAINING`` ends route iteration.
    """

    def __init__(self, kind: int = HaltKind.SKIP_REMAINING, skips: int = 1) -> None:
        self.kind = kind
        self.skips = int(skips)
        super().__init__(f"dispatch halted ({kind!r})")


class LockedResponseError(PerchError):
    """A locked response was mutated."""


class ResponseAlreadySentError(PerchError):
    """A response was sent twice."""


class UnhandledError(PerchError):
    """An exception reached the router with no error callback registered.

    Always raised ``from`` the original exception.
    """


class UnknownServiceError(PerchError, LookupError):
    """No service is registered under the requested name."""


class DuplicateServiceError(PerchError):
    """A service name was registered twice."""
