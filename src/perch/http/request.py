"""Mutable HTTP request.

Holds the parameter collections the router reads and writes: the query
string (``params_get``), the form body (``params_post``), cookies, server
variables, uploaded files, and the named-parameter sink the dispatch loop
fills from route captures.
"""

from __future__ import annotations

import hashlib
import uuid
from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode

from perch.datacollection import DataCollection, ServerDataCollection
from perch.http.cookies import parse_cookies
from perch.http.headers import HeaderCollection


class Request:
    """An HTTP request.

    Construct directly with plain dicts (tests) or from a CGI/WSGI
    environment via :meth:`from_environ`. Route captures are merged into
    :attr:`params_named` during dispatch.

    Usage::

        request = Request(server={"REQUEST_URI": "/dogs/7", "REQUEST_METHOD": "GET"})
        request.pathname()    # "/dogs/7"
        request.param("id")   # named capture once dispatched
    """

    __slots__ = (
        "_body",
        "_id",
        "cookies",
        "files",
        "headers",
        "params_get",
        "params_named",
        "params_post",
        "server",
    )

    def __init__(
        self,
        params_get: Mapping[str, Any] | None = None,
        params_post: Mapping[str, Any] | None = None,
        cookies: Mapping[str, Any] | None = None,
        server: Mapping[str, Any] | None = None,
        files: Mapping[str, Any] | None = None,
        body: str | None = None,
    ) -> None:
        self.params_get = DataCollection(params_get)
        self.params_post = DataCollection(params_post)
        self.cookies = DataCollection(cookies)
        self.server = ServerDataCollection(server)
        self.headers = HeaderCollection(self.server.headers())
        self.files = DataCollection(files)
        self.params_named = DataCollection()
        self._body = None if body is None else str(body)
        self._id: str | None = None

    @classmethod
    def from_environ(cls, environ: Mapping[str, Any]) -> Request:
        """Build a request from a CGI/WSGI environment mapping.

        ``REQUEST_URI`` is reconstructed from ``PATH_INFO`` and
        ``QUERY_STRING`` when the server does not supply it. A WSGI
        ``wsgi.input`` stream is read as the body, and a form-encoded body
        is parsed into ``params_post``.
        """
        server = dict(environ)
        query_string = str(server.get("QUERY_STRING", ""))
        if "REQUEST_URI" not in server:
            path = str(server.get("SCRIPT_NAME", "")) + str(server.get("PATH_INFO", ""))
            server["REQUEST_URI"] = f"{path}?{query_string}" if query_string else path

        body: str | None = None
        stream = server.get("wsgi.input")
        if stream is not None:
            length = str(server.get("CONTENT_LENGTH") or "0")
            size = int(length) if length.isdigit() else 0
            body = stream.read(size).decode("latin-1") if size else ""

        params_post: dict[str, str] = {}
        content_type = str(server.get("CONTENT_TYPE", ""))
        if body and content_type.startswith("application/x-www-form-urlencoded"):
            params_post = dict(parse_qsl(body, keep_blank_values=True))

        return cls(
            params_get=dict(parse_qsl(query_string, keep_blank_values=True)),
            params_post=params_post,
            cookies=parse_cookies(str(server.get("HTTP_COOKIE", ""))),
            server=server,
            body=body,
        )

    # -- Identity --

    def id(self, hashed: bool = True) -> str:
        """A unique id for this request, generated once."""
        if self._id is None:
            raw = uuid.uuid4().hex
            self._id = hashlib.sha1(raw.encode()).hexdigest() if hashed else raw
        return self._id

    def body(self) -> str | None:
        return self._body

    # -- Parameters --

    def params(self, mask: Iterable[str] | None = None, fill_with_nulls: bool = True) -> dict[str, Any]:
        """All request parameters merged by precedence.

        Later sources win: query, then body, then cookies, then named
        route captures. With a *mask* only those keys are returned, and
        with ``fill_with_nulls`` missing masked keys map to ``None``.
        """
        mask = None if mask is None else list(mask)
        merged: dict[str, Any] = dict.fromkeys(mask, None) if mask is not None and fill_with_nulls else {}
        for source in (self.params_get, self.params_post, self.cookies, self.params_named):
            merged.update(source.all(mask, fill_with_nulls=False))
        return merged

    def param(self, key: str, default: Any = None) -> Any:
        value = self.params().get(key)
        return default if value is None else value

    # -- Request line --

    def method(self, is_: str | None = None, allow_override: bool = True) -> Any:
        """The request method, or a comparison when *is_* is given.

        A POST may be overridden by the ``X-HTTP-Method-Override`` header
        or, failing that, a ``_method`` parameter.
        """
        method = self.server.get("REQUEST_METHOD", "GET")
        method = method if isinstance(method, str) else "GET"

        if allow_override and method == "POST":
            override = self.headers.get("X-HTTP-Method-Override")
            if override is None:
                override = self.param("_method", method)
            if isinstance(override, str):
                method = override
            method = method.upper()

        if is_ is not None:
            return method.lower() == is_.lower()
        return method

    def uri(self) -> str:
        uri = self.server.get("REQUEST_URI", "")
        return uri if isinstance(uri, str) else ""

    def pathname(self) -> str:
        """The request URI without its query string."""
        return self.uri().partition("?")[0]

    def query(self, key: str | Mapping[str, Any] | None = None, value: Any = None) -> str:
        """The current URI with its query string modified.

        ``query("page", 2)`` sets one key; ``query({"a": 1})`` merges a
        mapping. A ``None`` value removes the key.
        """
        query = dict(parse_qsl(str(self.server.get("QUERY_STRING", "")), keep_blank_values=True))
        if key is not None:
            updates = key if isinstance(key, Mapping) else {key: value}
            query.update(updates)
        query = {k: v for k, v in query.items() if v is not None}

        path = self.pathname()
        return f"{path}?{urlencode(query)}" if query else path

    # -- Client --

    def is_secure(self) -> bool:
        https = self.server.get("HTTPS", "")
        return bool(https) and str(https).lower() != "off"

    def ip(self) -> str:
        ip = self.server.get("REMOTE_ADDR", "")
        return ip if isinstance(ip, str) else ""

    def user_agent(self) -> str:
        agent = self.headers.get("User-Agent", "")
        return agent if isinstance(agent, str) else ""

    def __repr__(self) -> str:
        return f"<Request {self.method()} {self.uri()!r}>"
