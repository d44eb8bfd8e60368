"""Perch: an ordered, multi-match HTTP router.

Routes are tried in the order they were registered and every match runs,
so setup and teardown routes compose with page routes::

    from perch import Router

    router = Router()

    @router.route("*")
    def setup(request, response):
        response.header("X-Powered-By", "perch")

    @router.route("/hello/[:name]", methods="GET")
    def hello(request):
        return f"Hello, {request.param('name')}!"

    router.dispatch()
"""

__version__ = "0.1.0.dev0"
__all__ = [
    "App",
    "CaptureMode",
    "DispatchHalted",
    "HTTPError",
    "HttpStatus",
    "MethodNotAllowed",
    "NotFound",
    "PatternCompilationError",
    "PerchError",
    "Request",
    "Response",
    "Route",
    "RouteCollection",
    "RouteFactory",
    "Router",
    "RouterConfig",
    "ServiceProvider",
    "UnhandledError",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    if name == "Router":
        from perch.router import Router

        return Router

    if name == "RouterConfig":
        from perch.config import RouterConfig

        return RouterConfig

    if name == "CaptureMode":
        from perch.output import CaptureMode

        return CaptureMode

    if name == "App":
        from perch.app import App

        return App

    if name == "ServiceProvider":
        from perch.service import ServiceProvider

        return ServiceProvider

    if name == "Request":
        from perch.http.request import Request

        return Request

    if name == "Response":
        from perch.http.response import Response

        return Response

    if name == "HttpStatus":
        from perch.http.status import HttpStatus

        return HttpStatus

    if name in ("Route", "RouteCollection", "RouteFactory"):
        from perch.routing import collection as _collection
        from perch.routing import factory as _factory
        from perch.routing import route as _route

        for module in (_route, _collection, _factory):
            if hasattr(module, name):
                return getattr(module, name)

    if name in (
        "DispatchHalted",
        "HTTPError",
        "MethodNotAllowed",
        "NotFound",
        "PatternCompilationError",
        "PerchError",
        "UnhandledError",
    ):
        from perch import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
