"""Reverse path resolution — route name + params -> concrete path."""

from collections.abc import Mapping
from typing import Any

from perch.errors import RouteNotFound
from perch.routing.collection import RouteCollection
from perch.routing.compiler import reverse_route


def is_custom_regex(path: str) -> bool:
    """True for ``@regex`` and negated ``!@regex`` paths."""
    return path.startswith("@") or path.startswith("!@")


def path_for(
    routes: RouteCollection,
    name: str,
    params: Mapping[str, Any] | None = None,
    flatten_regex: bool = True,
) -> str:
    """Build the path of the route called *name*.

    Placeholders are filled from *params*. A custom regex path has no
    placeholders to fill, so unless ``flatten_regex`` is false it resolves
    to ``"/"``.

    Raises ``RouteNotFound`` when no route carries *name*; names are looked
    up after ``routes.prepare_named()``.
    """
    route = routes.get(name)
    if route is None or route.name != name:
        msg = f"No such route with name: {name}"
        raise RouteNotFound(msg)

    path = route.path
    reversed_path = reverse_route(path, dict(params or {}))

    if reversed_path == path and flatten_regex and is_custom_regex(path):
        return "/"
    return reversed_path
