"""HTTP status code plus reason phrase."""

from __future__ import annotations

from dataclasses import dataclass
from http import HTTPStatus


def message_for(code: int) -> str:
    """Reason phrase for *code*, or ``""`` for an unregistered code."""
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return ""


@dataclass(frozen=True, slots=True)
class HttpStatus:
    """A status code and its message, formatted as ``"404 Not Found"``."""

    code: int
    message: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "code", int(self.code))
        if self.message is None:
            object.__setattr__(self, "message", message_for(self.code))

    def formatted(self) -> str:
        return f"{self.code} {self.message}"

    def __str__(self) -> str:
        return self.formatted()
