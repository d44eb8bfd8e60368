"""The Route record."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from perch._internal.types import Handler

# Path value meaning "match every request"
NULL_PATH_VALUE = "*"


def normalize_method(method: Any) -> str | tuple[str, ...] | None:
    """Coerce a method filter into ``None``, a name, or a tuple of names.

    Non-string members of an iterable become empty strings so they can
    never match a request method.
    """
    if method is None or isinstance(method, str):
        return method
    if isinstance(method, Iterable):
        return tuple(m if isinstance(m, str) else "" for m in method)
    msg = f"Expected a method name or an iterable of names. Got a {type(method).__name__}"
    raise TypeError(msg)


@dataclass(slots=True, eq=False)
class Route:
    """A registered route.

    Routes compare by identity: the same path and callback registered twice
    are two routes. Only ``name`` is expected to change after registration
    (``router.respond(...).set_name("dogs")``).
    """

    callback: Handler
    path: str = NULL_PATH_VALUE
    method: str | tuple[str, ...] | None = None
    count_match: bool = True
    name: str | None = None

    def __post_init__(self) -> None:
        if not callable(self.callback):
            msg = f"Route callback must be callable, got {self.callback!r}"
            raise TypeError(msg)
        self.path = NULL_PATH_VALUE if self.path is None else str(self.path)
        self.method = normalize_method(self.method)
        self.count_match = bool(self.count_match)
        if self.name is not None:
            self.name = str(self.name)

    def set_name(self, name: str | None) -> Route:
        """Name the route for reverse lookup. Returns the route for chaining."""
        self.name = None if name is None else str(name)
        return self

    @property
    def methods(self) -> tuple[str, ...]:
        """The declared methods as a tuple (empty when any method matches)."""
        if self.method is None:
            return ()
        if isinstance(self.method, str):
            return (self.method,)
        return self.method

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.callback(*args, **kwargs)
