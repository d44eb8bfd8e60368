"""Cookie parsing and ResponseCookie serialization.

Consolidates the read side (parse_cookies, used by Request.from_environ)
and the write side (ResponseCookie, used by Response) in one module.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from email.utils import formatdate

# Default cookie lifetime when no expiry is given: 30 days
DEFAULT_COOKIE_LIFETIME = 3600 * 24 * 30


def parse_cookies(header: str) -> dict[str, str]:
    """Parse a ``Cookie`` header value into a name-value dict.

    Returns an empty dict for empty or missing headers.
    """
    if not header:
        return {}
    cookies: dict[str, str] = {}
    for pair in header.split(";"):
        pair = pair.strip()
        if "=" in pair:
            key, _, value = pair.partition("=")
            cookies[key.strip()] = value.strip()
    return cookies


def default_expiry() -> int:
    return int(time.time()) + DEFAULT_COOKIE_LIFETIME


@dataclass(frozen=True, slots=True)
class ResponseCookie:
    """A ``Set-Cookie`` directive attached to a Response.

    ``expire`` is a Unix timestamp; ``0`` makes a session cookie.
    """

    name: str
    value: str = ""
    expire: int = 0
    path: str = "/"
    domain: str = ""
    secure: bool = False
    httponly: bool = False

    def to_header_value(self) -> str:
        """Serialize to a ``Set-Cookie`` header value string."""
        parts = [f"{self.name}={self.value}"]
        if self.expire:
            parts.append(f"Expires={formatdate(self.expire, usegmt=True)}")
        if self.path:
            parts.append(f"Path={self.path}")
        if self.domain:
            parts.append(f"Domain={self.domain}")
        if self.secure:
            parts.append("Secure")
        if self.httponly:
            parts.append("HttpOnly")
        return "; ".join(parts)
