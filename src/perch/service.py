"""Per-request service helpers passed to every handler.

The router binds the current request and response before dispatch, so
handlers can redirect, flash messages, and share data between routes that
match the same request.
"""

from __future__ import annotations

import html
from typing import TYPE_CHECKING, Any

from perch.datacollection import DataCollection

if TYPE_CHECKING:
    from perch.http.request import Request
    from perch.http.response import Response


class ServiceProvider:
    """Shared data, flash messages, and redirect helpers.

    Flash messages are kept in memory on the provider, grouped by type,
    and consumed when read.
    """

    __slots__ = ("_flashes", "request", "response", "shared_data")

    def __init__(self, request: Request | None = None, response: Response | None = None) -> None:
        self.request: Request | None = None
        self.response: Response | None = None
        self.shared_data = DataCollection()
        self._flashes: dict[str, list[str]] = {}
        self.bind(request, response)

    def bind(self, request: Request | None = None, response: Response | None = None) -> ServiceProvider:
        """Attach *request* and *response*, keeping the current ones for ``None``."""
        self.request = request if request is not None else self.request
        self.response = response if response is not None else self.response
        return self

    # -- Flash messages --

    def flash(self, message: str, type: str = "info") -> None:  # noqa: A002
        self._flashes.setdefault(type, []).append(str(message))

    def flashes(self, type: str | None = None) -> Any:  # noqa: A002
        """Pop flash messages.

        Without *type* every group is returned as a dict and cleared;
        with one, only that group's list is.
        """
        if type is None:
            flashes, self._flashes = self._flashes, {}
            return flashes
        return self._flashes.pop(type, [])

    # -- Helpers --

    @staticmethod
    def escape(text: str) -> str:
        return html.escape(str(text), quote=True)

    def refresh(self) -> ServiceProvider:
        """Redirect to the current request URI."""
        if self.request is not None and self.response is not None:
            self.response.redirect(self.request.uri())
        return self

    def back(self) -> ServiceProvider:
        """Redirect to the referer, or refresh when there is none."""
        if self.request is not None and self.response is not None:
            referer = self.request.server.get("HTTP_REFERER")
            if isinstance(referer, str):
                self.response.redirect(referer)
            else:
                self.refresh()
        return self
