"""Application context: lazily created, named services.

Handlers receive the App as their fourth argument. Register a factory
once during setup; the first ``get`` builds the service and later calls
return the same instance.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from perch.errors import DuplicateServiceError, UnknownServiceError


class App:
    """Named service registry.

    Usage::

        app = App()
        app.register("db", lambda: connect("sqlite:///app.db"))
        app.get("db")   # connects on first access only

    Services are also reachable as attributes (``app.db``).
    """

    def __init__(self) -> None:
        self._factories: dict[str, Callable[[], Any]] = {}
        self._services: dict[str, Any] = {}

    def register(self, name: str, factory: Callable[[], Any]) -> App:
        """Register a zero-argument *factory* under *name*."""
        if name in self._factories:
            msg = f"A service is already registered under the name {name!r}"
            raise DuplicateServiceError(msg)
        if not callable(factory):
            msg = f"Service factory for {name!r} must be callable, got {factory!r}"
            raise TypeError(msg)
        self._factories[name] = factory
        return self

    def has(self, name: str) -> bool:
        return name in self._factories

    def get(self, name: str) -> Any:
        """Return the service instance, building it on first access."""
        if name not in self._factories:
            msg = f"Unknown service {name!r}"
            raise UnknownServiceError(msg)
        if name not in self._services:
            self._services[name] = self._factories[name]()
        return self._services[name]

    def __getattr__(self, name: str) -> Any:
        # Only called for missing attributes, so registry fields never route here.
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self.get(name)
        except UnknownServiceError as exc:
            raise AttributeError(name) from exc
