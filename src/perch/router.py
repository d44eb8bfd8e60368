"""The Router: route registration and the dispatch loop.

Routes are tried in registration order. Every route whose method and path
match the request runs, not just the first, so a single request can pass
through several handlers (a ``"*"`` route for setup, a real route for
the page, another ``"*"`` for teardown). Handlers steer the loop with
:meth:`Router.skip_this`, :meth:`Router.skip_next`,
:meth:`Router.skip_remaining` and :meth:`Router.abort`.

Usage::

    router = Router()

    @router.route("/dogs/[i:id]", methods="GET", name="dog")
    def show_dog(request, response):
        return f"dog {request.param('id')}"

    router.dispatch(Request.from_environ(environ))
"""

from __future__ import annotations

import contextlib
import logging
import os
import runpy
import warnings
from collections.abc import Callable, Iterator, Mapping
from pathlib import Path
from typing import Any
from urllib.parse import unquote

from perch._internal.invoke import invoke
from perch._internal.types import AfterDispatchHook, ErrorHandler, Handler, HttpErrorHandler
from perch.app import App
from perch.config import RouterConfig
from perch.errors import (
    ConfigurationError,
    DispatchHalted,
    HaltKind,
    HTTPError,
    LockedResponseError,
    MethodNotAllowed,
    NotFound,
    PatternCompilationError,
    UnhandledError,
)
from perch.http.request import Request
from perch.http.response import Response
from perch.output import CaptureMode, OutputBuffer, compose
from perch.routing.collection import RouteCollection
from perch.routing.compiler import CompiledPattern, PatternCache, compile_regex, compile_route
from perch.routing.factory import RouteFactory
from perch.routing.resolver import path_for
from perch.routing.route import NULL_PATH_VALUE, Route
from perch.service import ServiceProvider

logger = logging.getLogger("perch.router")

# Characters that start regex syntax in a route path, and characters that
# make the preceding one optional or repeated
_REGEX_OPENERS = frozenset("[(.")
_REGEX_QUANTIFIERS = frozenset("?+*{")

# Paths of the deprecated error-handler routes
_LEGACY_NOT_FOUND = "404"
_LEGACY_NOT_ALLOWED = "405"


def literal_prefix_matches(pattern: str, uri: str) -> bool:
    """Compare the literal head of *pattern* against *uri*.

    Stops (and reports a possible match) at the first character that
    begins regex syntax. ``/`` is never compared so optional trailing
    slashes keep working. A ``False`` result means the full regex can
    never match and need not be compiled.
    """
    j = 0
    for i, char in enumerate(pattern):
        following = pattern[i + 1] if i + 1 < len(pattern) else ""
        if char in _REGEX_OPENERS or following in _REGEX_QUANTIFIERS:
            return True
        if char != "/" and (j >= len(uri) or char != uri[j]):
            return False
        j += 1
    return True


def method_matches(route: Route, request_method: str) -> bool | None:
    """Whether *route* accepts *request_method*.

    ``None`` when the route declares no method at all. Names compare
    case-insensitively, and a HEAD request is accepted by GET routes.
    """
    if route.method is None:
        return None
    request_method = request_method.upper()
    for method in route.methods:
        method = method.upper()
        if method == request_method:
            return True
        if request_method == "HEAD" and method in ("HEAD", "GET"):
            return True
    return False


class Router:
    """Registers routes and dispatches requests through them.

    Every route callback is called with up to seven positional arguments:
    ``(request, response, service, app, router, matched, methods_matched)``.
    Callbacks may declare fewer; they receive the leading ones.

    Captures are merged into ``request.params_named``. A custom ``@`` regex
    contributes every group under its index as well as its named groups.
    """

    def __init__(
        self,
        service: ServiceProvider | None = None,
        app: Any = None,
        routes: RouteCollection | None = None,
        route_factory: RouteFactory | None = None,
        *,
        config: RouterConfig | None = None,
        pattern_cache: PatternCache | None = None,
    ) -> None:
        self.config = config if config is not None else RouterConfig()
        self.service = service if service is not None else ServiceProvider()
        self.app = app if app is not None else App()
        self.routes = routes if routes is not None else RouteCollection()
        self.route_factory = (
            route_factory if route_factory is not None else RouteFactory(self.config.namespace)
        )
        self.pattern_cache = pattern_cache

        self.request: Request | None = None
        self.response: Response | None = None

        self._error_callbacks: list[ErrorHandler | str] = []
        self._http_error_callbacks: list[HttpErrorHandler | Route] = []
        self._after_dispatch_callbacks: list[AfterDispatchHook] = []
        self._buffer: OutputBuffer | None = None

    # -- Registration --

    def add_route(
        self,
        callback: Handler,
        path: str | None = None,
        method: str | list[str] | tuple[str, ...] | None = None,
        name: str | None = None,
    ) -> Route:
        """Register *callback* for *path* and *method*. Returns the Route."""
        route = self.route_factory.build(callback, path, method, name=name)
        self.routes.add(route)
        logger.debug("registered %s %s", route.methods or "*", route.path)
        return route

    def respond(self, *args: Any, name: str | None = None) -> Route:
        """Register a route from ``[method], [path], callback``.

        The callback is always last; a path precedes it, and a method (or
        list of methods) precedes the path::

            router.respond(handler)
            router.respond("/about", handler)
            router.respond(["GET", "POST"], "/form", handler)
        """
        remaining = list(args)
        callback = remaining.pop() if remaining else None
        path = remaining.pop() if remaining else None
        method = remaining.pop() if remaining else None

        if not callable(callback):
            msg = "Missing callback to respond."
            raise ConfigurationError(msg)

        path = str(path) if isinstance(path, (str, int)) else None

        if isinstance(method, (list, tuple)):
            method = tuple(str(m) for m in method if isinstance(m, (str, int, float)) and str(m))
        elif not isinstance(method, str):
            method = None

        return self.add_route(callback, path, method, name)

    def _respond_for(self, method: str, args: tuple[Any, ...], name: str | None) -> Route:
        callback = args[-1] if args else None
        path = args[-2] if len(args) > 1 else None
        return self.respond(method, path, callback, name=name)

    def get(self, *args: Any, name: str | None = None) -> Route:
        return self._respond_for("GET", args, name)

    def post(self, *args: Any, name: str | None = None) -> Route:
        return self._respond_for("POST", args, name)

    def put(self, *args: Any, name: str | None = None) -> Route:
        return self._respond_for("PUT", args, name)

    def patch(self, *args: Any, name: str | None = None) -> Route:
        return self._respond_for("PATCH", args, name)

    def delete(self, *args: Any, name: str | None = None) -> Route:
        return self._respond_for("DELETE", args, name)

    def head(self, *args: Any, name: str | None = None) -> Route:
        return self._respond_for("HEAD", args, name)

    def options(self, *args: Any, name: str | None = None) -> Route:
        return self._respond_for("OPTIONS", args, name)

    def route(
        self,
        path: str | None = None,
        *,
        methods: str | list[str] | tuple[str, ...] | None = None,
        name: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Decorator form of :meth:`add_route`. Returns the function unchanged."""

        def decorator(func: Handler) -> Handler:
            self.add_route(func, path, methods, name)
            return func

        return decorator

    # -- Namespaces --

    @contextlib.contextmanager
    def namespace(self, prefix: str) -> Iterator[Router]:
        """Prefix every route registered inside the block with *prefix*.

        Blocks nest; the previous namespace is restored on exit.
        """
        previous = self.route_factory.namespace
        self.route_factory.append_namespace(prefix)
        try:
            yield self
        finally:
            self.route_factory.namespace = previous

    def with_namespace(self, prefix: str, routes: Callable[[Router], Any] | str | Path) -> None:
        """Register a group of routes under *prefix*.

        *routes* is either a callable receiving the router or the path of a
        Python file that registers routes on the global ``router``.
        """
        with self.namespace(prefix):
            if callable(routes):
                routes(self)
            else:
                runpy.run_path(str(routes), init_globals={"router": self})

    # -- Callbacks --

    def on_error(self, callback: ErrorHandler | str) -> None:
        """Add a handler for unexpected exceptions raised during dispatch.

        Called with ``(router, message, type_name, exc)``. The first
        callable handler ends the chain. A string is a redirect target:
        the exception text is flashed and the response redirected there.
        """
        self._error_callbacks.append(callback)

    def on_http_error(self, callback: HttpErrorHandler | Route) -> None:
        """Add a handler run for every HTTP error (404, 405, ``abort(code)``).

        Called with ``(code, router, matched, methods_matched, exc)``. A
        :class:`Route` is called like a matched route instead. All
        handlers run, in registration order.
        """
        self._http_error_callbacks.append(callback)

    def after_dispatch(self, callback: AfterDispatchHook) -> None:
        """Add a hook run with ``(router)`` after the response is composed."""
        self._after_dispatch_callbacks.append(callback)

    # -- Control flow (raised from inside route callbacks) --

    def skip_this(self) -> None:
        raise DispatchHalted(HaltKind.SKIP_THIS)

    def skip_next(self, num: int = 1) -> None:
        raise DispatchHalted(HaltKind.SKIP_NEXT, num)

    def skip_remaining(self) -> None:
        raise DispatchHalted(HaltKind.SKIP_REMAINING)

    def abort(self, code: int | None = None) -> None:
        """Stop dispatching. With a *code*, respond with that HTTP error."""
        if code is not None:
            raise HTTPError.from_code(code)
        raise DispatchHalted(HaltKind.SKIP_REMAINING)

    # -- Reverse routing --

    def path_for(
        self,
        route_name: str,
        params: Mapping[str, Any] | None = None,
        flatten_regex: bool = True,
    ) -> str:
        """Build the path of a named route. See :func:`perch.routing.resolver.path_for`."""
        self.routes.prepare_named()
        return path_for(self.routes, route_name, params, flatten_regex)

    # -- Dispatch --

    def dispatch(
        self,
        request: Request | None = None,
        response: Response | None = None,
        send_response: bool | None = None,
        capture: CaptureMode | None = None,
    ) -> str:
        """Run *request* through the routes.

        Without a request one is built from ``os.environ`` (CGI). Output
        printed by handlers is captured and folded into the response per
        *capture*. Returns the captured output for
        ``CaptureMode.RETURN`` (the response is then not sent) and ``""``
        otherwise.

        Raises ``UnhandledError`` when a handler fails (or a route path
        does not compile) and no error callback is registered. The
        original exception is its ``__cause__``.
        """
        if send_response is None:
            send_response = self.config.send_response
        capture = CaptureMode(self.config.capture if capture is None else capture)

        self.request = request if request is not None else Request.from_environ(os.environ)
        self.response = response if response is not None else Response()
        self.service.bind(self.request, self.response)

        self.routes.prepare_named()
        uri = self.request.pathname()
        req_method = str(self.request.method())
        logger.debug("dispatch %s %s", req_method, uri)

        matched = self.routes.clone_empty()
        methods_matched: list[str] = []

        with OutputBuffer() as buffer:
            self._buffer = buffer
            try:
                self._run_routes(uri, req_method, matched, methods_matched)
            except HTTPError as exc:
                locked = self.response.is_locked()
                self._http_error(exc, matched, methods_matched)
                if not locked:
                    self.response.unlock()
            except Exception as exc:
                self._error(exc)

        returned = compose(self.response, buffer, capture, head=req_method.upper() == "HEAD")
        self._buffer = None

        self._call_after_dispatch_callbacks()

        if capture == CaptureMode.RETURN:
            return returned
        if send_response and not self.response.is_sent():
            self.response.send()
        return ""

    def _run_routes(
        self,
        uri: str,
        req_method: str,
        matched: RouteCollection,
        methods_matched: list[str],
    ) -> None:
        skip = 0

        for route in self.routes:
            if skip > 0:
                skip -= 1
                continue

            method_match = method_matches(route, req_method)
            possible_match = method_match is None or method_match

            path = route.path
            negate = path.startswith("!")
            expression = path[1:] if negate else path
            params: dict[str, str] = {}

            if expression == NULL_PATH_VALUE:
                raw_match = True
            elif self._is_legacy_error_route(path, matched, methods_matched):
                warnings.warn(
                    'Use of "404"/"405" routes is deprecated. Use router.on_http_error() instead.',
                    DeprecationWarning,
                    stacklevel=3,
                )
                if not any(callback is route for callback in self._http_error_callbacks):
                    self.on_http_error(route)
                continue
            elif expression.startswith("@"):
                found = self._compile(route, expression, custom=True).search(uri)
                raw_match = found is not None
                params = found or {}
            elif not literal_prefix_matches(expression, uri):
                raw_match = False
            else:
                found = self._compile(route, expression).match(uri)
                raw_match = found is not None
                params = found or {}

            if raw_match == negate:
                continue

            if possible_match:
                if params:
                    self.request.params_named.merge({k: unquote(v) for k, v in params.items()})

                try:
                    self._handle_route_callback(route, matched, methods_matched)
                except DispatchHalted as halt:
                    logger.debug("halt %r from %s", halt.kind, route.path)
                    if halt.kind == HaltKind.SKIP_THIS:
                        continue
                    if halt.kind == HaltKind.SKIP_NEXT:
                        skip = halt.skips
                    elif halt.kind == HaltKind.SKIP_REMAINING:
                        break
                    else:
                        raise

                if path != NULL_PATH_VALUE and route.count_match:
                    matched.add(route)

            if route.count_match:
                for method in route.methods:
                    if method and method not in methods_matched:
                        methods_matched.append(method)

        if matched.is_empty() and methods_matched:
            allowed = tuple(methods_matched)
            self.response.header("Allow", ", ".join(allowed))
            if req_method.upper() != "OPTIONS":
                logger.debug("405 %s %s", req_method, uri)
                raise MethodNotAllowed(allowed)
        elif matched.is_empty():
            logger.debug("404 %s %s", req_method, uri)
            raise NotFound()

    @staticmethod
    def _is_legacy_error_route(path: str, matched: RouteCollection, methods_matched: list[str]) -> bool:
        if not matched.is_empty():
            return False
        if path == _LEGACY_NOT_FOUND:
            return not methods_matched
        if path == _LEGACY_NOT_ALLOWED:
            return bool(methods_matched)
        return False

    def _compile(self, route: Route, expression: str, custom: bool = False) -> CompiledPattern:
        """Compiled matcher for *expression*, through the pattern cache if any."""
        cache = self.pattern_cache
        key = f"{self.config.cache_key_prefix}{expression}"

        if cache is not None:
            compiled = cache.get(key)
            if compiled is not None:
                return compiled

        try:
            compiled = compile_regex(expression[1:]) if custom else compile_route(expression)
        except PatternCompilationError as exc:
            raise exc.for_route(route) from exc

        if cache is not None:
            cache.set(key, compiled)
        return compiled

    def _handle_route_callback(
        self,
        route: Route,
        matched: RouteCollection,
        methods_matched: list[str],
    ) -> None:
        logger.debug("route %s %s", route.methods or "*", route.path)
        returned = invoke(
            route.callback,
            self.request,
            self.response,
            self.service,
            self.app,
            self,
            matched,
            list(methods_matched),
        )

        if isinstance(returned, Response):
            self.response = returned
            self.service.bind(response=returned)
        elif returned is not None:
            with contextlib.suppress(LockedResponseError):
                self.response.append(str(returned))

    # -- Error chains --

    def _http_error(
        self,
        exc: HTTPError,
        matched: RouteCollection,
        methods_matched: list[str],
    ) -> None:
        if not self.response.is_locked():
            self.response.code(exc.status)
        for name, value in exc.headers:
            self.response.header(name, value)

        for callback in list(self._http_error_callbacks):
            if isinstance(callback, Route):
                self._handle_route_callback(callback, matched, methods_matched)
            else:
                invoke(callback, exc.status, self, matched, list(methods_matched), exc)

        self.response.lock()

    def _error(self, exc: Exception) -> None:
        message = str(exc)
        type_name = type(exc).__name__

        try:
            if not self._error_callbacks:
                self.response.unlock()
                self.response.code(500)
                self.response.body("")
                self._discard_output()
                logger.exception("500 %s %s", self.request.method(), self.request.pathname())
                raise UnhandledError(message) from exc

            for callback in self._error_callbacks:
                if callable(callback):
                    invoke(callback, self, message, type_name, exc)
                    return
                self.service.flash(message)
                self.response.redirect(callback)
        except Exception:
            self._discard_output()
            raise

        self.response.lock()

    def _discard_output(self) -> None:
        if self._buffer is not None:
            self._buffer.discard()

    def _call_after_dispatch_callbacks(self) -> None:
        try:
            for callback in self._after_dispatch_callbacks:
                invoke(callback, self)
        except Exception as exc:
            self._error(exc)
