"""Tests for perch.config — RouterConfig defaults and immutability."""

import dataclasses

import pytest

from perch.config import RouterConfig
from perch.output import CaptureMode
from perch.router import Router


class TestRouterConfig:
    def test_defaults(self) -> None:
        config = RouterConfig()
        assert config.send_response is True
        assert config.capture == CaptureMode.NONE
        assert config.namespace == ""
        assert config.cache_key_prefix == "route:"

    def test_frozen(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            RouterConfig().namespace = "/x"  # type: ignore[misc]

    def test_replace(self) -> None:
        config = dataclasses.replace(RouterConfig(), capture=CaptureMode.RETURN)
        assert config.capture == CaptureMode.RETURN

    def test_namespace_seeds_route_factory(self) -> None:
        router = Router(config=RouterConfig(namespace="/api"))
        route = router.respond("/users", lambda: None)
        assert route.path == "/api/users"
