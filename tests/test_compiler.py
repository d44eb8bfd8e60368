"""Tests for perch.routing.compiler — route path compilation and reversal."""

import re

import pytest

from perch.errors import PatternCompilationError
from perch.routing.compiler import (
    MATCH_TYPES,
    CompiledPattern,
    MemoryPatternCache,
    PatternCache,
    compile_regex,
    compile_route,
    reverse_route,
    to_regex,
)


class TestToRegex:
    def test_static_path(self) -> None:
        assert to_regex("/about") == "^/about$"

    def test_literal_text_is_escaped(self) -> None:
        assert to_regex("/a+b") == "^/a\\+b$"

    def test_typed_placeholder(self) -> None:
        assert to_regex("/posts/[i:id]") == "^/posts(?:/(?P<id>[0-9]++))$"

    def test_optional_placeholder_takes_its_delimiter(self) -> None:
        assert to_regex("/file.[:ext]?") == "^/file(?:\\.(?P<ext>[^/]+?))?$"

    def test_unknown_type_is_used_verbatim(self) -> None:
        assert to_regex("/feed.[xml|json:format]") == "^/feed(?:\\.(?P<format>xml|json))$"

    def test_unnamed_placeholder(self) -> None:
        assert to_regex("/[i]") == "^(?:/([0-9]++))$"

    def test_optional_trailing_slash_left_alone(self) -> None:
        assert to_regex("/dog/?") == "^/dog/?$"


class TestCompileRoute:
    def test_returns_compiled_pattern(self) -> None:
        compiled = compile_route("/posts/[i:id]")
        assert isinstance(compiled, CompiledPattern)
        assert compiled.names == ("id",)

    def test_integer_type(self) -> None:
        compiled = compile_route("/posts/[i:id]")
        assert compiled.match("/posts/42") == {"id": "42"}
        assert compiled.match("/posts/abc") is None

    def test_alnum_type(self) -> None:
        compiled = compile_route("/u/[a:name]")
        assert compiled.match("/u/bob42") == {"name": "bob42"}
        assert compiled.match("/u/bob-42") is None

    def test_hex_type(self) -> None:
        compiled = compile_route("/c/[h:color]")
        assert compiled.match("/c/ff00AA") == {"color": "ff00AA"}
        assert compiled.match("/c/zz") is None

    def test_slug_type(self) -> None:
        compiled = compile_route("/p/[s:slug]")
        assert compiled.match("/p/hello-world_2") == {"slug": "hello-world_2"}

    def test_default_type_stops_at_slash(self) -> None:
        compiled = compile_route("/p/[:name]")
        assert compiled.match("/p/one") == {"name": "one"}
        assert compiled.match("/p/one/two") is None

    def test_star_types_cross_slashes(self) -> None:
        assert compile_route("/files/[*:path]").match("/files/a/b.txt") == {"path": "a/b.txt"}
        assert compile_route("/files/[**:path]").match("/files/a/b.txt") == {"path": "a/b.txt"}

    def test_optional_placeholder_absent(self) -> None:
        compiled = compile_route("/file.[:ext]?")
        assert compiled.match("/file") == {}
        assert compiled.match("/file.json") == {"ext": "json"}

    def test_optional_trailing_slash(self) -> None:
        compiled = compile_route("/dog/?")
        assert compiled.match("/dog") == {}
        assert compiled.match("/dog/") == {}

    def test_anchored(self) -> None:
        compiled = compile_route("/about")
        assert compiled.match("/about/us") is None
        assert compiled.match("/x/about") is None

    def test_invalid_pattern_raises_with_path(self) -> None:
        with pytest.raises(PatternCompilationError) as excinfo:
            compile_route("/broken/[(:x]")
        assert excinfo.value.pattern == "/broken/[(:x]"
        assert 'Route failed to compile with path "/broken/[(:x]"' in str(excinfo.value)

    def test_match_types_cover_documented_keys(self) -> None:
        assert set(MATCH_TYPES) == {"i", "a", "h", "s", "*", "**", ""}


class TestCompileRegex:
    def test_search_is_unanchored(self) -> None:
        compiled = compile_regex(r"\.json$")
        assert compiled.search("/data.json") == {}
        assert compiled.search("/data.xml") is None

    def test_named_groups(self) -> None:
        compiled = compile_regex(r"^/users/(?P<id>\d+)$")
        assert compiled.search("/users/12") == {"1": "12", "id": "12"}

    def test_positional_groups_keyed_by_index(self) -> None:
        compiled = compile_regex(r"^/(\w+)/(\d+)(/edit)?$")
        assert compiled.search("/posts/3") == {"1": "posts", "2": "3"}

    def test_warning_is_fatal_on_every_compile(self) -> None:
        for _ in range(2):
            with pytest.raises(PatternCompilationError, match="nested set"):
                compile_regex(r"^/set[[]$")

    def test_unmatched_optional_groups_are_dropped(self) -> None:
        compiled = compile_regex(r"^/a(?:/(?P<b>\w+))?$")
        assert compiled.search("/a") == {}

    def test_invalid_regex(self) -> None:
        with pytest.raises(PatternCompilationError) as excinfo:
            compile_regex("(unclosed")
        assert excinfo.value.pattern == "(unclosed"
        assert excinfo.value.diagnostic

    def test_regex_attribute(self) -> None:
        assert isinstance(compile_regex("^/$").regex, re.Pattern)


class TestReverseRoute:
    def test_fills_placeholders(self) -> None:
        assert reverse_route("/dogs/[i:dog_id]/collars", {"dog_id": 7}) == "/dogs/7/collars"

    def test_missing_optional_vanishes(self) -> None:
        assert reverse_route("/file.[:ext]?", {}) == "/file"

    def test_optional_with_value_keeps_delimiter(self) -> None:
        assert reverse_route("/file.[:ext]?", {"ext": "json"}) == "/file.json"

    def test_missing_required_left_verbatim(self) -> None:
        assert reverse_route("/dogs/[i:dog_id]", {}) == "/dogs/[i:dog_id]"

    def test_non_scalar_value_renders_empty(self) -> None:
        assert reverse_route("/tags/[:tag]", {"tag": ["a", "b"]}) == "/tags/"

    @pytest.mark.parametrize(("flag", "expected"), [(True, "/beta/1"), (False, "/beta/")])
    def test_booleans_render_as_flags(self, flag: bool, expected: str) -> None:
        assert reverse_route("/beta/[:on]", {"on": flag}) == expected

    def test_no_placeholders(self) -> None:
        assert reverse_route("/about", None) == "/about"


class TestMemoryPatternCache:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(MemoryPatternCache(), PatternCache)

    def test_get_set(self) -> None:
        cache = MemoryPatternCache()
        assert cache.get("k") is None
        compiled = compile_route("/x")
        cache.set("k", compiled)
        assert cache.get("k") is compiled
        assert "k" in cache
        assert len(cache) == 1

    def test_clear(self) -> None:
        cache = MemoryPatternCache()
        cache.set("k", compile_route("/x"))
        cache.clear()
        assert len(cache) == 0
