"""Tests for perch.routing.factory — namespace-aware route building."""

from perch.routing.factory import RouteFactory


def _handler() -> None:
    return None


class TestPreprocessPath:
    def test_no_namespace_passes_through(self) -> None:
        factory = RouteFactory()
        assert factory.preprocess_path("/dogs") == "/dogs"
        assert factory.preprocess_path("@^/dogs") == "@^/dogs"
        assert factory.preprocess_path(None) == "*"

    def test_namespace_prefixes_path(self) -> None:
        assert RouteFactory("/users").preprocess_path("/[i:id]") == "/users/[i:id]"

    def test_match_all_becomes_namespace_root(self) -> None:
        factory = RouteFactory("/users")
        assert factory.preprocess_path(None) == "@^/users(/|$)"
        assert factory.preprocess_path("*") == "@^/users(/|$)"

    def test_anchored_custom_regex(self) -> None:
        assert RouteFactory("/users").preprocess_path("@^/[0-9]+$") == "@^/users/[0-9]+$"

    def test_unanchored_custom_regex_searches_below_namespace(self) -> None:
        assert RouteFactory("/users").preprocess_path("@\\.json$") == "@^/users.*\\.json$"

    def test_negated_custom_regex(self) -> None:
        assert RouteFactory("/users").preprocess_path("!@^/admin") == "@^/users(?!/admin)"

    def test_append_namespace(self) -> None:
        factory = RouteFactory("/api")
        factory.append_namespace("/v2")
        assert factory.namespace == "/api/v2"


class TestBuild:
    def test_real_path_counts(self) -> None:
        route = RouteFactory().build(_handler, "/dogs", "GET", name="dogs")
        assert route.path == "/dogs"
        assert route.method == "GET"
        assert route.name == "dogs"
        assert route.count_match is True

    def test_match_all_never_counts(self) -> None:
        assert RouteFactory().build(_handler).count_match is False
        assert RouteFactory().build(_handler, "*").count_match is False

    def test_count_match_argument_is_ignored(self) -> None:
        assert RouteFactory().build(_handler, "/dogs", count_match=False).count_match is True

    def test_namespaced_match_all_still_does_not_count(self) -> None:
        route = RouteFactory("/users").build(_handler)
        assert route.path == "@^/users(/|$)"
        assert route.count_match is False
