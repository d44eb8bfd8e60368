"""Invoke helpers — call user callbacks with as many arguments as they take.

Perch passes every route callback the same seven positional arguments
(request, response, service, app, router, matched, methods_matched). A
handler that only cares about the request should not have to spell out
the rest, so the positional list is trimmed to fit the signature::

    router.respond("/", lambda request: request.param("q"))
"""

import inspect
from typing import Any


def positional_arity(handler: Any) -> int | None:
    """Return how many positional arguments *handler* accepts.

    ``None`` means "any number": the callable takes ``*args`` or its
    signature cannot be introspected (some builtins and C extensions).
    """
    try:
        sig = inspect.signature(handler)
    except (TypeError, ValueError):
        return None

    count = 0
    for param in sig.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return None
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            count += 1
    return count


def invoke(handler: Any, *args: Any) -> Any:
    """Call *handler* with the leading slice of *args* its signature accepts."""
    arity = positional_arity(handler)
    if arity is None:
        return handler(*args)
    return handler(*args[:arity])
