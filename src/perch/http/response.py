"""Mutable HTTP response.

The router owns one Response per dispatch. Handlers append to it, set
headers and status, and may lock it to refuse further body or status
changes. Sending writes the body to ``sys.stdout``, the CGI transport.
"""

from __future__ import annotations

import html
import json as json_module
import pprint
import sys
from collections.abc import Mapping
from typing import Any

from perch.datacollection import DataCollection
from perch.errors import LockedResponseError, ResponseAlreadySentError
from perch.http.cookies import ResponseCookie, default_expiry
from perch.http.headers import HeaderCollection
from perch.http.status import HttpStatus

DEFAULT_STATUS_CODE = 200


class Response:
    """An HTTP response built by mutation.

    Getter/setter pairs follow one convention: call with no argument to
    read, with an argument to write (the response is returned for
    chaining)::

        response.code(404).body("gone")
        response.code()    # 404
    """

    __slots__ = (
        "_body",
        "_headers_sent",
        "_locked",
        "_sent",
        "_status",
        "chunked",
        "cookies",
        "headers",
        "protocol_version",
    )

    def __init__(
        self,
        body: str | None = "",
        status_code: int | None = None,
        headers: Mapping[str, Any] | None = None,
    ) -> None:
        self._locked = False
        self._sent = False
        self._headers_sent = False
        self.chunked = False
        self.protocol_version = "1.1"
        self._body = "" if body is None else str(body)
        self._status = HttpStatus(status_code or DEFAULT_STATUS_CODE)
        self.headers = HeaderCollection(headers)
        self.cookies = DataCollection()

    # -- Body and status --

    def body(self, body: str | None = None) -> Any:
        if body is None:
            return self._body
        self.require_unlocked()
        self._body = str(body)
        return self

    def code(self, code: int | None = None) -> Any:
        if code is None:
            return self._status.code
        self.require_unlocked()
        self._status = HttpStatus(code)
        return self

    def status(self) -> HttpStatus:
        return self._status

    def prepend(self, content: str) -> Response:
        self.require_unlocked()
        self._body = str(content) + self._body
        return self

    def append(self, content: str) -> Response:
        self.require_unlocked()
        self._body += str(content)
        return self

    # -- Locking --

    def is_locked(self) -> bool:
        return self._locked

    def require_unlocked(self) -> Response:
        if self._locked:
            msg = "Response is locked"
            raise LockedResponseError(msg)
        return self

    def lock(self) -> Response:
        self._locked = True
        return self

    def unlock(self) -> Response:
        self._locked = False
        return self

    # -- Headers and cookies --

    def header(self, key: str, value: Any) -> Response:
        self.headers.set(key, value)
        return self

    def cookie(
        self,
        key: str,
        value: str = "",
        expiry: int | None = None,
        path: str = "/",
        domain: str = "",
        secure: bool = False,
        httponly: bool = False,
    ) -> Response:
        """Set a cookie. Without *expiry* it lives for 30 days."""
        if expiry is None:
            expiry = default_expiry()
        self.cookies.set(key, ResponseCookie(key, value, expiry, path, domain, secure, httponly))
        return self

    def no_cache(self) -> Response:
        self.header("Pragma", "no-cache")
        self.header("Cache-Control", "no-store, no-cache")
        return self

    def redirect(self, url: str, code: int = 302) -> Response:
        """Point the client at *url* and lock the response."""
        self.code(code)
        self.header("Location", url)
        self.lock()
        return self

    def status_line(self) -> str:
        return f"HTTP/{self.protocol_version} {self._status}"

    def header_list(self) -> list[tuple[str, str]]:
        """Headers plus one ``Set-Cookie`` per cookie, in WSGI form."""
        pairs = self.headers.to_list()
        pairs.extend(("Set-Cookie", cookie.to_header_value()) for cookie in self.cookies.values())
        return pairs

    # -- Content helpers --

    def json(self, obj: Any, jsonp_prefix: str | None = None) -> Response:
        """Replace the body with *obj* encoded as JSON (or JSONP)."""
        self.body("")
        self.no_cache()
        encoded = json_module.dumps(obj)
        if jsonp_prefix is not None:
            self.header("Content-Type", "text/javascript")
            self.body(f"{jsonp_prefix}({encoded});")
        else:
            self.header("Content-Type", "application/json")
            self.body(encoded)
        return self

    def dump(self, obj: Any) -> Response:
        """Append an HTML-escaped debug rendering of *obj*."""
        if not isinstance(obj, (str, int, float, bool)):
            obj = pprint.pformat(obj)
        self.append(f"<pre>{html.escape(str(obj))}</pre><br />\n")
        return self

    # -- Sending --

    def send_headers(self) -> Response:
        """Mark headers as sent.

        The CGI transport has no header channel of its own; WSGI adapters
        read :meth:`status_line` and :meth:`header_list` instead.
        """
        self._headers_sent = True
        return self

    def headers_sent(self) -> bool:
        return self._headers_sent

    def send_body(self) -> Response:
        sys.stdout.write(self._body)
        return self

    def send(self, override: bool = False) -> Response:
        """Send headers and body, then lock the response."""
        if self._sent and not override:
            msg = "Response has already been sent"
            raise ResponseAlreadySentError(msg)
        self.send_headers()
        self.send_body()
        self.lock()
        self._sent = True
        sys.stdout.flush()
        return self

    def is_sent(self) -> bool:
        return self._sent

    def chunk(self, content: str | None = None) -> Response:
        """Send the current body as one chunk of a chunked transfer.

        The first call switches the response to chunked encoding. The
        body is cleared after being written, so a locked response raises
        ``LockedResponseError`` once a pending body exists.
        """
        if not self.chunked:
            self.chunked = True
            self.header("Transfer-Encoding", "chunked")

        if self._body:
            sys.stdout.write(f"{len(self._body.encode()):x}\r\n")
            self.send_body()
            self.body("")
            sys.stdout.write("\r\n")

        if content is not None:
            sys.stdout.write(f"{len(content.encode()):x}\r\n{content}\r\n")

        sys.stdout.flush()
        return self

    def __repr__(self) -> str:
        return f"<Response {self._status}>"
