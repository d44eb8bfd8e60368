"""Handler output capture.

Handlers may ``print()`` their output instead of writing to the response.
While a dispatch runs, ``sys.stdout`` is redirected into an
:class:`OutputBuffer`; afterwards the :class:`CaptureMode` decides what
happens to the captured text.
"""

from __future__ import annotations

import contextlib
import io
import sys
from enum import IntEnum
from typing import TYPE_CHECKING, TextIO

from perch.errors import LockedResponseError

if TYPE_CHECKING:
    from perch.http.response import Response


class CaptureMode(IntEnum):
    """What the router does with output captured during dispatch."""

    NONE = 0  # pass captured output through to the real stdout
    RETURN = 1  # return it from dispatch() instead of sending
    REPLACE = 2  # replace the response body (only when output is non-empty)
    PREPEND = 3
    APPEND = 4


class OutputBuffer:
    """Scoped stdout capture.

    Usage::

        with OutputBuffer() as buffer:
            print("hello")
        buffer.drain()   # "hello\\n"

    The target (the stdout in effect on entry) is remembered so captured
    text can be flushed through with :meth:`flush`.
    """

    __slots__ = ("_buffer", "_redirect", "target")

    def __init__(self) -> None:
        self._buffer = io.StringIO()
        self._redirect: contextlib.redirect_stdout[io.StringIO] | None = None
        self.target: TextIO | None = None

    def __enter__(self) -> OutputBuffer:
        self.target = sys.stdout
        self._redirect = contextlib.redirect_stdout(self._buffer)
        self._redirect.__enter__()
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._redirect is not None:
            self._redirect.__exit__(*exc_info)
            self._redirect = None

    def drain(self) -> str:
        """Return everything captured so far and empty the buffer."""
        text = self._buffer.getvalue()
        self.discard()
        return text

    def discard(self) -> None:
        self._buffer.seek(0)
        self._buffer.truncate()

    def flush(self) -> None:
        """Write captured text through to the original stdout."""
        text = self.drain()
        if text:
            (self.target or sys.stdout).write(text)


def compose(
    response: Response,
    buffer: OutputBuffer,
    capture: CaptureMode,
    *,
    head: bool = False,
) -> str:
    """Fold captured handler output into *response* according to *capture*.

    A chunked response sends its pending body as a chunk instead. A HEAD
    request ends with an empty body and no captured output. Returns the
    captured text for ``CaptureMode.RETURN``, otherwise ``""``.

    A locked response refuses these writes; that is expected here and is
    not an error.
    """
    returned = ""
    with contextlib.suppress(LockedResponseError):
        if response.chunked:
            response.chunk()
        elif capture == CaptureMode.RETURN:
            returned = buffer.drain()
        elif capture == CaptureMode.REPLACE:
            text = buffer.drain()
            if text:
                response.body(text)
        elif capture == CaptureMode.PREPEND:
            response.prepend(buffer.drain())
        elif capture == CaptureMode.APPEND:
            response.append(buffer.drain())

        if head:
            response.body("")

    if head:
        buffer.discard()
    elif capture == CaptureMode.NONE:
        buffer.flush()
    else:
        buffer.discard()
    return returned
