"""Shared type aliases used across perch modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler: called with (request, response, service, app, router, matched, methods_matched)
Handler: TypeAlias = Callable[..., Any]

# Generic error callback: (router, message, type_name, exc)
ErrorHandler: TypeAlias = Callable[..., Any]

# HTTP error callback: (code, router, matched, methods_matched, exc)
HttpErrorHandler: TypeAlias = Callable[..., Any]

# After-dispatch hook: (router)
AfterDispatchHook: TypeAlias = Callable[..., Any]
