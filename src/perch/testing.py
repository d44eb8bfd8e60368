"""Test helpers for perch routers.

Builds requests without a CGI environment and runs them through the same
dispatch loop production uses.
"""

from collections.abc import Mapping
from typing import Any

from perch.http.request import Request
from perch.http.response import Response
from perch.output import CaptureMode
from perch.router import Router


def create_request(
    uri: str = "/",
    method: str = "GET",
    params: Mapping[str, Any] | None = None,
    cookies: Mapping[str, Any] | None = None,
    server: Mapping[str, Any] | None = None,
    files: Mapping[str, Any] | None = None,
    body: str | None = None,
) -> Request:
    """Build a Request for *method* *uri*.

    *params* land in the query parameters for GET and in the body
    parameters otherwise. Extra *server* variables override the derived
    ``REQUEST_URI``/``REQUEST_METHOD``/``QUERY_STRING``.
    """
    _, _, query_string = uri.partition("?")
    server_vars: dict[str, Any] = {
        "REQUEST_URI": uri,
        "REQUEST_METHOD": method,
        "QUERY_STRING": query_string,
    }
    server_vars.update(server or {})

    params = dict(params or {})
    is_get = method.upper() == "GET"

    return Request(
        params_get=params if is_get else None,
        params_post=None if is_get else params,
        cookies=cookies,
        server=server_vars,
        files=files,
        body=body,
    )


def dispatch_output(router: Router, request: Request | None = None) -> str:
    """Dispatch without sending and return everything handlers printed."""
    return router.dispatch(request or create_request(), send_response=False, capture=CaptureMode.RETURN)


def dispatch_response(router: Router, request: Request | None = None) -> Response:
    """Dispatch without sending and return the composed response.

    Printed output is appended to the body.
    """
    router.dispatch(request or create_request(), send_response=False, capture=CaptureMode.APPEND)
    return router.response


# ---------------------------------------------------------------------------
# Response assertion helpers
# ---------------------------------------------------------------------------


def assert_status(response: Response, status: int) -> None:
    """Assert the response carries *status*."""
    assert response.code() == status, f"Expected status {status}, got {response.status()}"


def assert_body_contains(response: Response, text: str) -> None:
    """Assert the response body contains *text*."""
    body = response.body()
    assert text in body, f"Body does not contain {text!r}.\nResponse body: {body[:500]}"
