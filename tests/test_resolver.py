"""Tests for perch.routing.resolver — reverse path resolution."""

import pytest

from perch.errors import RouteNotFound
from perch.routing.collection import RouteCollection
from perch.routing.resolver import is_custom_regex, path_for
from perch.routing.route import Route


def _handler() -> None:
    return None


def _routes(*routes: Route) -> RouteCollection:
    return RouteCollection(routes).prepare_named()


class TestPathFor:
    def test_fills_params(self) -> None:
        routes = _routes(Route(_handler, "/dogs/[i:dog_id]/collars", name="collars"))
        assert path_for(routes, "collars", {"dog_id": 7}) == "/dogs/7/collars"

    def test_optional_dropped(self) -> None:
        routes = _routes(Route(_handler, "/posts/[i:id]/[:slug]?", name="post"))
        assert path_for(routes, "post", {"id": 3}) == "/posts/3"

    def test_unknown_name(self) -> None:
        with pytest.raises(RouteNotFound, match="No such route with name: nope"):
            path_for(_routes(), "nope")

    def test_route_not_found_is_lookup_error(self) -> None:
        with pytest.raises(LookupError):
            path_for(_routes(), "nope")

    def test_custom_regex_flattens_to_root(self) -> None:
        routes = _routes(Route(_handler, "@^/admin/.*", name="admin"))
        assert path_for(routes, "admin") == "/"

    def test_custom_regex_not_flattened_on_request(self) -> None:
        routes = _routes(Route(_handler, "@^/admin/.*", name="admin"))
        assert path_for(routes, "admin", flatten_regex=False) == "@^/admin/.*"

    def test_static_path(self) -> None:
        routes = _routes(Route(_handler, "/about", name="about"))
        assert path_for(routes, "about") == "/about"


class TestIsCustomRegex:
    def test_detection(self) -> None:
        assert is_custom_regex("@^/a")
        assert is_custom_regex("!@^/a")
        assert not is_custom_regex("/a")
        assert not is_custom_regex("!/a")
