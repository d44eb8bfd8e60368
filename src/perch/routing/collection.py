"""Ordered, keyed route collection.

Insertion order is dispatch order. Routes are keyed by an identity-derived
key until :meth:`RouteCollection.prepare_named` gives named routes their
name as key.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

from perch.routing.route import Route


def route_key(route: Route) -> str:
    """Stable, unique key for *route* derived from its identity."""
    return f"route-{id(route):x}"


class RouteCollection:
    """An ordered mapping of key -> :class:`Route`.

    Iterating yields routes (not keys) in insertion order, which is the
    order the router tries them in.

    Usage::

        routes = RouteCollection()
        routes.add(Route(handler, "/dogs", name="dogs"))
        routes.prepare_named()
        routes.get("dogs")
    """

    __slots__ = ("_routes",)

    def __init__(self, routes: Iterable[Route | Any] = ()) -> None:
        self._routes: dict[str, Route] = {}
        for route in routes:
            self.add(route)

    # -- Insertion --

    def set(self, key: str, route: Route | Any) -> RouteCollection:
        """Store *route* under *key*. A bare callable is wrapped in a Route."""
        if not isinstance(route, Route):
            if not callable(route):
                msg = f"Invalid route callable: {route!r}"
                raise TypeError(msg)
            route = Route(route)
        self._routes[key] = route
        return self

    def add(self, route: Route | Any) -> RouteCollection:
        """Store *route* under its identity key.

        Adding the same Route instance twice keeps a single entry.
        """
        if not isinstance(route, Route):
            route = Route(route)
        return self.set(route_key(route), route)

    # -- Lookup --

    def get(self, key: str, default: Route | None = None) -> Route | None:
        return self._routes.get(key, default)

    def __getitem__(self, key: str) -> Route:
        return self._routes[key]

    def __contains__(self, key: object) -> bool:
        return key in self._routes

    def exists(self, key: str) -> bool:
        return key in self._routes

    def keys(self) -> list[str]:
        return list(self._routes)

    def items(self) -> list[tuple[str, Route]]:
        return list(self._routes.items())

    def all(self) -> list[Route]:
        """All routes in dispatch order."""
        return list(self._routes.values())

    def __iter__(self) -> Iterator[Route]:
        return iter(list(self._routes.values()))

    def __len__(self) -> int:
        return len(self._routes)

    def is_empty(self) -> bool:
        return not self._routes

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._routes)!r})"

    # -- Removal --

    def remove(self, key: str) -> None:
        self._routes.pop(key, None)

    def clear(self) -> RouteCollection:
        self._routes.clear()
        return self

    def clone_empty(self) -> RouteCollection:
        """An empty collection of the same type."""
        return type(self)()

    # -- Naming --

    def prepare_named(self) -> RouteCollection:
        """Re-key named routes by their name, keeping dispatch order.

        When several routes share a name, the last one (in dispatch order)
        owns the name key; the others stay under their identity key so no
        route drops out of dispatch. Unnamed routes go back to their
        identity key. Safe to call before every dispatch.
        """
        owners: dict[str, Route] = {}
        for route in self._routes.values():
            if route.name:
                owners[route.name] = route

        prepared: dict[str, Route] = {}
        for route in self._routes.values():
            if route.name and owners[route.name] is route:
                prepared[route.name] = route
            else:
                prepared[route_key(route)] = route

        self._routes = prepared
        return self
